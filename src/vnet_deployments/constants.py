"""Configuration constants for vnet-deployments library."""

TENDERLY_API_BASE_URL = "https://api.tenderly.co/api/v1"
TENDERLY_DASHBOARD_URL = "https://dashboard.tenderly.co"

# Prepended to the forked network id when no explicit chain id is given
DEFAULT_CHAIN_ID_PREFIX = "7357"

# Workspace layout (relative to $GITHUB_WORKSPACE)
STATE_DIR_NAME = ".tenderly"
INFRA_DIR_NAME = "infra"
LOGS_DIR_NAME = "logs"
OUTPUT_DIR_NAME = "ci-cd-out"

DEPLOYMENTS_SUFFIX = "-deployments.json"

# Files in the logs directory that are scanned; anything else is ignored
LOG_EXTENSIONS = (".log", ".txt")

# Markers emitted by hardhat-tenderly during verification.
# Compared case-insensitively against each log line.
SECTION_MARKER = "##"
START_VERIFYING_MARKER = "start verifying contract"
COMPILER_VERSION_MARKER = "compiler version"
OPTIMIZATIONS_MARKER = "optimizations"
SUBMITTING_MARKER = "submitting verification for"
VERIFICATION_STATUS_MARKER = "contract verification status"
RESPONSE_MARKER = "response:"

RPC_ADMIN_NAME = "Admin RPC"
RPC_PUBLIC_NAME = "Public RPC"
