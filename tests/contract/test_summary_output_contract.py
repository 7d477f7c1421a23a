from __future__ import annotations

import re

"""SUMMARY line format contract test."""

SUMMARY_PATTERN = re.compile(
    r"^SUMMARY\s+files=([0-9]+)/(\1)\s+success=([0-9]+)\s+failed=([0-9]+)\s+"
    r"rows=([0-9]+)\s+rejected=([0-9]+)\s+skipped_sheets=([0-9]+)\s+elapsed_sec=([0-9]+\.?[0-9]*)\s+"
    r"throughput_rps=([0-9]+\.?[0-9]*)$"
)


def test_summary_pattern_example_line():
    line = (
        "SUMMARY files=1/1 success=1 failed=0 rows=4 rejected=1 skipped_sheets=0 "
        "elapsed_sec=0.84 throughput_rps=4761.9"
    )
    m = SUMMARY_PATTERN.match(line)
    assert m, "SUMMARY line should match contract regex"
    assert m.group(6) == "1"


def test_summary_pattern_rejects_mismatched_totals():
    line = (
        "SUMMARY files=1/2 success=1 failed=0 rows=4 rejected=0 skipped_sheets=0 "
        "elapsed_sec=0.84 throughput_rps=4761.9"
    )
    assert SUMMARY_PATTERN.match(line) is None
