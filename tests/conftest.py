"""Shared test fixtures for sctercset tests."""
import pytest

from sctercset.core.registry import HEADER


SMART_INFO_ATA = """smartctl 7.3 2022-02-28 r5338 [x86_64-linux-6.1.0] (local build)
Copyright (C) 2002-22, Bruce Allen, Christian Franke, www.smartmontools.org

=== START OF INFORMATION SECTION ===
Model Family:     Western Digital Red
Device Model:     WDC WD40EFRX-68N32N0
Serial Number:    {serial}
User Capacity:    4,000,787,030,016 bytes [4.00 TB]

=== START OF READ SMART DATA SECTION ===
SMART overall-health self-assessment test result: PASSED
"""

SMART_INFO_NO_SMART = """smartctl 7.3 2022-02-28 r5338 [x86_64-linux-6.1.0] (local build)
/dev/sdz: Unable to detect device type
Please specify device type with the -d option.
"""

SCTERC_ENABLED = """smartctl 7.3 2022-02-28 r5338 [x86_64-linux-6.1.0] (local build)

SCT Error Recovery Control:
           Read:     70 (7.0 seconds)
          Write:     70 (7.0 seconds)
"""

SCTERC_DISABLED = """smartctl 7.3 2022-02-28 r5338 [x86_64-linux-6.1.0] (local build)

SCT Error Recovery Control:
           Read: Disabled
          Write: Disabled
"""

SCTERC_UNSUPPORTED = """smartctl 7.3 2022-02-28 r5338 [x86_64-linux-6.1.0] (local build)

SCT Error Recovery Control command not supported
"""


class RecordingApplicator:
    """Stand-in for TimeoutApplicator that records what it was asked to do."""

    def __init__(self, succeed: bool = True):
        self.succeed = succeed
        self.applied = []

    def apply(self, action):
        self.applied.append(action)
        return self.succeed


def fake_smartctl(drives):
    """Build a run_cmd for SmartctlProbe from {device: (info, scterc)}."""
    def run_cmd(cmd):
        device = cmd[-1]
        if device not in drives:
            return ""
        info, scterc = drives[device]
        if cmd[1] == "-a":
            return info
        return scterc
    return run_cmd


@pytest.fixture(autouse=True)
def wide_console(monkeypatch):
    """Keep Rich from wrapping long output lines in CLI assertions."""
    from sctercset.cli import console

    monkeypatch.setenv("COLUMNS", "250")
    monkeypatch.setattr(console, "width", 250)


@pytest.fixture
def registry_file(tmp_path):
    """Registry from the example in the tool's documentation."""
    path = tmp_path / "scterc_set" / "scterc_conf.csv"
    path.parent.mkdir()
    path.write_text(f"{HEADER}\nABC123DE,yes,yes\nFGH4I567,yes,no\n")
    return path


@pytest.fixture
def applicator():
    return RecordingApplicator()


@pytest.fixture
def failing_applicator():
    return RecordingApplicator(succeed=False)


@pytest.fixture
def drive_output():
    """(smartctl -a, smartctl -l scterc) output for a drive with ``serial``."""
    scterc_outputs = {
        "enabled": SCTERC_ENABLED,
        "disabled": SCTERC_DISABLED,
        "unsupported": SCTERC_UNSUPPORTED,
    }

    def build(serial, scterc="enabled"):
        return SMART_INFO_ATA.format(serial=serial), scterc_outputs[scterc]
    return build


@pytest.fixture
def smartctl():
    """Factory for fake smartctl runners, see fake_smartctl."""
    return fake_smartctl
