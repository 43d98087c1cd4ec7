"""Verification log parsers for vnet-deployments library.

hardhat-tenderly prints a block like the following for every contract it
verifies on a Virtual TestNet:

    ##
    Start verifying contract `0x5FbDB2315678afecb367f032d93F642f64180aa3` deployed on 73571
    Compiler version: 0.8.19
    Optimizations: 200
    Submitting verification for [contracts/Counter.sol:Counter] on Tenderly
    Contract verification status
    Response: `OK`

The format is not stable across plugin releases, so every field is extracted
independently and a line that doesn't match simply leaves the field empty.
"""

import logging
import re
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from .constants import (
    COMPILER_VERSION_MARKER,
    LOG_EXTENSIONS,
    OPTIMIZATIONS_MARKER,
    RESPONSE_MARKER,
    SECTION_MARKER,
    START_VERIFYING_MARKER,
    SUBMITTING_MARKER,
    VERIFICATION_STATUS_MARKER,
)
from .exceptions import LogReadError
from .types import ContractRecord

logger = logging.getLogger(__name__)

_ADDRESS_PATTERN = re.compile(r"`(0x[0-9a-fA-F]+)`")
_CHAIN_PATTERN = re.compile(r"deployed on\s+`?(\d+)", re.IGNORECASE)
_BRACKETED_PATTERN = re.compile(r"\[([^\]]+)\]")
_BACKTICK_PATTERN = re.compile(r"`([^`]+)`")
_TRAILING_TOKEN_PATTERN = re.compile(r"(\S+)\s*$")


class ScanState(Enum):
    """
    Scanner states.

    - OUTSIDE_SECTION: Initial state, every line is ignored until a `##` line
    - IN_SECTION: Verification output, lines are matched against the markers
    """

    OUTSIDE_SECTION = "outside-section"
    IN_SECTION = "in-section"


def extract_address(line: str) -> Optional[str]:
    """Return the backtick-quoted hex address in a line, if any."""
    match = _ADDRESS_PATTERN.search(line)
    return match.group(1) if match else None


def extract_chain(line: str) -> Optional[str]:
    """Return the numeric chain id following "deployed on", if any."""
    match = _CHAIN_PATTERN.search(line)
    return match.group(1) if match else None


def extract_compiler(line: str) -> Optional[str]:
    """Return the text after the first colon, trimmed."""
    _, sep, rest = line.partition(":")
    if not sep:
        return None
    return rest.strip() or None


def extract_optimizations(line: str) -> Optional[int]:
    """
    Parse the optimizer run count from the end of a line.

    Returns:
        The trailing integer, or None if the last token isn't a
        non-negative integer (e.g. "Optimizations: disabled")
    """
    match = _TRAILING_TOKEN_PATTERN.search(line)
    if match is None:
        return None
    token = match.group(1)
    if not token.isdigit():
        return None
    return int(token)


def extract_contract_source(line: str) -> Tuple[Optional[str], Optional[str]]:
    """
    Extract the source path and contract name from a `[path:Name]` token.

    Returns:
        Tuple of (contract_path, contract_name); either may be None
    """
    match = _BRACKETED_PATTERN.search(line)
    if match is None:
        return None, None

    path, sep, name = match.group(1).partition(":")
    return (path.strip() or None), (name.strip() or None) if sep else None


def extract_verification_status(line: Optional[str]) -> Optional[str]:
    """
    Extract the status from a `Response: `<status>`` line.

    Args:
        line: The line following the status announcement, None past end of file
    """
    if line is None:
        return None

    index = line.lower().find(RESPONSE_MARKER)
    if index < 0:
        return None

    match = _BACKTICK_PATTERN.search(line, index + len(RESPONSE_MARKER))
    return match.group(1) if match else None


class LogScanner:
    """
    Line-oriented state machine for a single log file.

    Fields seen after a "Start verifying contract" line are attached to the
    record it opened, until the next one flushes it.
    """

    def __init__(self) -> None:
        self.state = ScanState.OUTSIDE_SECTION
        self._current: Optional[ContractRecord] = None
        self._records: List[ContractRecord] = []

    def feed(self, lines: Sequence[str]) -> List[ContractRecord]:
        """
        Process every line of a file and return the records found.

        The scanner keeps no state between calls; a second call starts over.
        """
        self.state = ScanState.OUTSIDE_SECTION
        self._current = None
        self._records = []

        index = 0
        while index < len(lines):
            line = lines[index]
            index += 1

            if self.state is ScanState.OUTSIDE_SECTION:
                if line.strip() == SECTION_MARKER:
                    self.state = ScanState.IN_SECTION
                continue

            next_line = lines[index] if index < len(lines) else None
            if self._handle_line(line, next_line):
                # The response line belongs to the status line before it
                index += 1

        # No terminal marker: whatever is still open ends with the file
        self._flush()
        return self._records

    def _handle_line(self, line: str, next_line: Optional[str]) -> bool:
        """
        Apply a single line to the open record.

        Markers only count at the start of a line, so contract names such as
        "GasOptimizations" don't trigger them.

        Returns:
            True if next_line was a response line and has been consumed
        """
        lowered = line.strip().lower()

        if lowered.startswith(START_VERIFYING_MARKER):
            self._flush()
            self._current = ContractRecord(
                address=extract_address(line),
                chain=extract_chain(line),
            )
            return False

        if self._current is None:
            return False

        if lowered.startswith(COMPILER_VERSION_MARKER):
            self._current.compiler = extract_compiler(line)
        elif lowered.startswith(OPTIMIZATIONS_MARKER):
            self._current.optimizations = extract_optimizations(line)
        elif lowered.startswith(SUBMITTING_MARKER):
            path, name = extract_contract_source(line)
            self._current.contract_path = path
            self._current.contract_name = name
        elif lowered.startswith(VERIFICATION_STATUS_MARKER):
            self._current.verification_status = extract_verification_status(next_line)
            return next_line is not None and (
                next_line.strip().lower().startswith(RESPONSE_MARKER)
            )

        return False

    def _flush(self) -> None:
        record = self._current
        self._current = None
        if record is None:
            return

        if record.address is None or record.chain is None:
            logger.debug(
                "Dropping verification entry without address/chain: %s", record.to_dict()
            )
            return

        self._records.append(record)


def parse_log_lines(lines: Iterable[str]) -> List[ContractRecord]:
    """Parse the lines of one log file into contract records."""
    return LogScanner().feed(list(lines))


def parse_log_text(text: str) -> List[ContractRecord]:
    """Parse the full text of one log file into contract records."""
    return parse_log_lines(text.splitlines())


def list_log_files(directory: Union[Path, str]) -> List[Path]:
    """
    List the log files in a directory, sorted by name.

    Raises:
        LogReadError: If the directory cannot be listed
    """
    directory = Path(directory)
    try:
        entries = list(directory.iterdir())
    except OSError as e:
        raise LogReadError(f"Failed to list log directory {directory}: {e}") from e

    return sorted(
        (p for p in entries if p.is_file() and p.suffix.lower() in LOG_EXTENSIONS),
        key=lambda p: p.name,
    )


def scan_logs(directory: Union[Path, str]) -> List[ContractRecord]:
    """
    Extract contract records from every log file in a directory.

    Args:
        directory: Directory containing build tool logs

    Returns:
        Records in the order their "Start verifying contract" line appeared,
        files taken in filename order

    Raises:
        LogReadError: If the directory or one of its log files can't be read
    """
    records: List[ContractRecord] = []

    for log_file in list_log_files(directory):
        try:
            text = log_file.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise LogReadError(f"Failed to read log file {log_file}: {e}") from e

        file_records = parse_log_text(text)
        logger.debug("Found %d contract(s) in %s", len(file_records), log_file.name)
        records.extend(file_records)

    return records
