"""Unit tests for verification log parsers."""

from pathlib import Path

import pytest

from vnet_deployments.exceptions import LogReadError
from vnet_deployments.parsers import (
    LogScanner,
    ScanState,
    extract_address,
    extract_chain,
    extract_compiler,
    extract_contract_source,
    extract_optimizations,
    extract_verification_status,
    parse_log_lines,
    parse_log_text,
    scan_logs,
)

ADDRESS = "0xABCDEF1234567890123456789012345678901234"
OTHER_ADDRESS = "0x1111111111111111111111111111111111111111"


def start_line(address: str = ADDRESS, chain: str = "1") -> str:
    return f"Start verifying contract `{address}` deployed on {chain}"


class TestLineExtractors:
    """Test the per-field extraction helpers."""

    def test_extracts_backticked_address(self):
        assert extract_address(start_line()) == ADDRESS

    def test_address_without_backticks_is_absent(self):
        assert extract_address(f"Start verifying contract {ADDRESS} deployed on 1") is None

    def test_extracts_chain_after_deployed_on(self):
        assert extract_chain(start_line(chain="73571")) == "73571"

    def test_chain_missing_is_absent(self):
        assert extract_chain(f"Start verifying contract `{ADDRESS}`") is None

    def test_compiler_is_text_after_first_colon(self):
        assert extract_compiler("Compiler version:  v0.8.19+commit.7dd6d404 ") == (
            "v0.8.19+commit.7dd6d404"
        )

    def test_compiler_without_colon_is_absent(self):
        assert extract_compiler("Compiler version unknown") is None

    def test_optimizations_trailing_integer(self):
        assert extract_optimizations("Optimizations: 200") == 200

    def test_optimizations_zero(self):
        assert extract_optimizations("Optimizations: 0") == 0

    @pytest.mark.parametrize(
        "line", ["Optimizations: disabled", "Optimizations:", "Optimizations: -5", "Optimizations: 2.5"]
    )
    def test_optimizations_non_numeric_is_absent(self, line: str):
        assert extract_optimizations(line) is None

    def test_contract_source_split_on_first_colon(self):
        path, name = extract_contract_source(
            "Submitting verification for [contracts/Counter.sol:Counter] on Tenderly"
        )
        assert path == "contracts/Counter.sol"
        assert name == "Counter"

    def test_contract_source_without_brackets(self):
        assert extract_contract_source("Submitting verification for Counter") == (None, None)

    def test_contract_source_without_colon(self):
        path, name = extract_contract_source("Submitting verification for [Counter]")
        assert path == "Counter"
        assert name is None

    def test_verification_status_from_response(self):
        assert extract_verification_status("Response: `OK`") == "OK"

    def test_verification_status_without_response(self):
        assert extract_verification_status("`OK`") is None

    def test_verification_status_past_end_of_file(self):
        assert extract_verification_status(None) is None


class TestLogScanner:
    """Test the section state machine."""

    def test_starts_outside_section(self):
        assert LogScanner().state is ScanState.OUTSIDE_SECTION

    def test_enters_section_on_marker(self):
        scanner = LogScanner()
        scanner.feed(["##"])
        assert scanner.state is ScanState.IN_SECTION

    def test_no_start_markers_yields_nothing(self):
        lines = ["##", "Compiler version: 0.8.19", "Optimizations: 200", "random output"]
        assert parse_log_lines(lines) == []

    def test_empty_input_yields_nothing(self):
        assert parse_log_lines([]) == []

    def test_lines_before_marker_are_ignored(self):
        assert parse_log_lines([start_line()]) == []

    def test_marker_must_be_alone_on_line(self):
        assert parse_log_lines(["## Deploying", start_line()]) == []

    def test_single_start_line_is_flushed_at_end_of_file(self):
        records = parse_log_lines(["##", start_line()])

        assert len(records) == 1
        assert records[0].address == ADDRESS
        assert records[0].chain == "1"
        assert records[0].compiler is None
        assert records[0].verification_status is None

    def test_complete_fragment(self):
        lines = [
            "##",
            start_line(chain="73571"),
            "Compiler version: 0.8.19",
            "Optimizations: 200",
            "Submitting verification for [contracts/Counter.sol:Counter] on Tenderly",
            "Contract verification status",
            "Response: `OK`",
        ]
        records = parse_log_lines(lines)

        assert len(records) == 1
        record = records[0]
        assert record.address == ADDRESS
        assert record.chain == "73571"
        assert record.compiler == "0.8.19"
        assert record.optimizations == 200
        assert record.contract_path == "contracts/Counter.sol"
        assert record.contract_name == "Counter"
        assert record.verification_status == "OK"

    def test_markers_are_case_insensitive(self):
        lines = [
            "##",
            f"START VERIFYING CONTRACT `{ADDRESS}` DEPLOYED ON 5",
            "COMPILER VERSION: 0.8.20",
        ]
        records = parse_log_lines(lines)

        assert records[0].chain == "5"
        assert records[0].compiler == "0.8.20"

    def test_status_line_at_end_of_file(self):
        records = parse_log_lines(["##", start_line(), "Contract verification status"])

        assert len(records) == 1
        assert records[0].verification_status is None

    def test_status_only_read_from_following_line(self):
        lines = [
            "##",
            start_line(),
            "Contract verification status",
            "waiting...",
            "Response: `OK`",
        ]
        assert parse_log_lines(lines)[0].verification_status is None

    def test_fields_attach_to_current_record(self):
        lines = [
            "##",
            start_line(ADDRESS, "1"),
            "Compiler version: 0.8.19",
            start_line(OTHER_ADDRESS, "137"),
            "Contract verification status",
            "Response: `OK`",
            "Optimizations: 1000",
        ]
        first, second = parse_log_lines(lines)

        assert first.address == ADDRESS
        assert first.compiler == "0.8.19"
        assert first.optimizations is None
        assert first.verification_status is None

        assert second.address == OTHER_ADDRESS
        assert second.compiler is None
        assert second.verification_status == "OK"
        assert second.optimizations == 1000

    def test_status_before_compiler_lines(self):
        lines = [
            "##",
            start_line(),
            "Contract verification status",
            "Response: `ALREADY_VERIFIED`",
            "Compiler version: 0.8.19",
            "Optimizations: 200",
        ]
        record = parse_log_lines(lines)[0]

        assert record.verification_status == "ALREADY_VERIFIED"
        assert record.compiler == "0.8.19"
        assert record.optimizations == 200

    def test_fields_before_any_start_are_dropped(self):
        lines = ["##", "Compiler version: 0.8.19", start_line()]
        assert parse_log_lines(lines)[0].compiler is None

    def test_records_without_address_are_dropped(self):
        lines = ["##", "Start verifying contract deployed on 1", start_line()]
        records = parse_log_lines(lines)

        assert len(records) == 1
        assert records[0].address == ADDRESS

    def test_records_without_chain_are_dropped(self):
        assert parse_log_lines(["##", f"Start verifying contract `{ADDRESS}`"]) == []

    def test_unknown_lines_are_ignored(self):
        lines = ["##", start_line(), "something new from the plugin", "Optimizations: 200"]
        assert parse_log_lines(lines)[0].optimizations == 200

    @pytest.mark.parametrize("name", ["GasOptimizations", "CompilerVersionRegistry"])
    def test_marker_words_in_contract_name(self, name: str):
        lines = [
            "##",
            start_line(),
            "Compiler version: 0.8.19",
            "Optimizations: 200",
            f"Submitting verification for [contracts/{name}.sol:{name}] on Tenderly",
        ]
        record = parse_log_lines(lines)[0]

        assert record.contract_path == f"contracts/{name}.sol"
        assert record.contract_name == name
        assert record.compiler == "0.8.19"
        assert record.optimizations == 200

    def test_markers_only_count_at_line_start(self):
        lines = ["##", start_line(), "Skipping optimizations: 999"]
        assert parse_log_lines(lines)[0].optimizations is None

    def test_response_line_triggers_no_other_action(self):
        lines = [
            "##",
            start_line(),
            "Compiler version: 0.8.19",
            "Contract verification status",
            "Response: `Compiler version mismatch`",
        ]
        record = parse_log_lines(lines)[0]

        assert record.compiler == "0.8.19"
        assert record.verification_status == "Compiler version mismatch"

    def test_line_after_status_without_response_is_still_scanned(self):
        lines = [
            "##",
            start_line(ADDRESS),
            "Contract verification status",
            f"Start verifying contract `{OTHER_ADDRESS}` deployed on 1",
        ]
        records = parse_log_lines(lines)

        assert [r.address for r in records] == [ADDRESS, OTHER_ADDRESS]
        assert records[0].verification_status is None

    def test_feed_resets_state(self):
        scanner = LogScanner()
        scanner.feed(["##", start_line()])
        assert scanner.feed([start_line()]) == []

    def test_parse_log_text_handles_crlf(self):
        text = "##\r\n" + start_line() + "\r\nOptimizations: 200\r\n"
        records = parse_log_text(text)

        assert len(records) == 1
        assert records[0].optimizations == 200


class TestScanLogs:
    """Test scanning a directory of log files."""

    def test_scans_fixture_logs(self, fixtures_dir: Path):
        records = scan_logs(fixtures_dir / "logs")

        assert [r.contract_name for r in records] == ["Counter", "Token"]
        assert records[1].verification_status == "ALREADY_VERIFIED"
        assert records[1].chain == "7357137"

    def test_empty_directory(self, tmp_path: Path):
        assert scan_logs(tmp_path) == []

    def test_files_processed_in_name_order(self, tmp_path: Path):
        (tmp_path / "b.log").write_text("##\n" + start_line(OTHER_ADDRESS) + "\n")
        (tmp_path / "a.log").write_text("##\n" + start_line(ADDRESS) + "\n")

        records = scan_logs(tmp_path)
        assert [r.address for r in records] == [ADDRESS, OTHER_ADDRESS]

    def test_each_file_has_its_own_state(self, tmp_path: Path):
        (tmp_path / "a.log").write_text("##\n" + start_line(ADDRESS) + "\n")
        (tmp_path / "b.log").write_text(start_line(OTHER_ADDRESS) + "\n")

        records = scan_logs(tmp_path)
        assert [r.address for r in records] == [ADDRESS]

    def test_ignores_other_extensions(self, tmp_path: Path):
        (tmp_path / "notes.md").write_text("##\n" + start_line() + "\n")
        (tmp_path / "nested.log").mkdir()

        assert scan_logs(tmp_path) == []

    def test_missing_directory_raises(self, tmp_path: Path):
        with pytest.raises(LogReadError):
            scan_logs(tmp_path / "missing")

    def test_log_read_error_is_os_error(self, tmp_path: Path):
        with pytest.raises(OSError):
            scan_logs(tmp_path / "missing")

    def test_invalid_utf8_raises(self, tmp_path: Path):
        (tmp_path / "broken.log").write_bytes(b"##\n\xff\xfe\xfa")

        with pytest.raises(LogReadError):
            scan_logs(tmp_path)
