"""smartctl-backed drive diagnostics.

All knowledge of smartctl's text output lives here; the rest of sctercset
only sees DriveReading values.
"""
import re
import subprocess
from typing import List, Optional

from sctercset.core.logger import get_logger
from sctercset.models.drive import DriveReading

logger = get_logger(__name__)

_SMART_RESULT_RE = re.compile(r"^SMART overall-health self-assessment test result:[ \t]*(\S+)", re.MULTILINE)
_SMART_HEALTH_RE = re.compile(r"^SMART Health Status:[ \t]*(\S+)", re.MULTILINE)
_SERIAL_RE = re.compile(r"^Serial [Nn]umber:[ \t]*(\S+)", re.MULTILINE)
_SCTERC_READ_RE = re.compile(r"^[ \t]*Read:[ \t]*(\S+)", re.MULTILINE)


def parse_smart_supported(output: str) -> bool:
    """True if ``smartctl -a`` printed an overall health result.

    ATA drives print ``SMART overall-health self-assessment test result``,
    SAS drives ``SMART Health Status``. Neither line means the device does
    not do SMART (or did not answer) and should not be probed further.
    """
    return bool(_SMART_RESULT_RE.search(output) or _SMART_HEALTH_RE.search(output))


def parse_serial(output: str) -> str:
    match = _SERIAL_RE.search(output)
    return match.group(1) if match else ""


def parse_scterc_read(output: str) -> Optional[str]:
    """First token of the ``Read:`` line of ``smartctl -l scterc``.

    ``70`` for a drive with a 7.0 second timeout, ``Disabled`` for a drive
    that supports SCT ERC with it switched off, None when the drive does not
    support the command at all.
    """
    match = _SCTERC_READ_RE.search(output)
    return match.group(1) if match else None


class SmartctlProbe:
    """Queries one device at a time with smartctl."""

    def __init__(self, smartctl: str = "smartctl", timeout: int = 30, run_cmd=None):
        self.smartctl = smartctl
        self.timeout = timeout
        self.run_cmd = run_cmd or self._run

    def probe(self, device: str) -> Optional[DriveReading]:
        """Read serial and SCT ERC status of ``device``.

        Returns:
            DriveReading (with an empty serial if none was reported), or None
            when the device does not report SMART health.
        """
        info = self.run_cmd([self.smartctl, "-a", device])
        if not parse_smart_supported(info):
            logger.debug(f"Skipping {device}: no SMART health report")
            return None

        serial = parse_serial(info)
        if not serial:
            return DriveReading(device_id=device, serial="", supports_fast_recovery=False)

        raw = parse_scterc_read(self.run_cmd([self.smartctl, "-l", "scterc", device]))
        return DriveReading(
            device_id=device,
            serial=serial,
            supports_fast_recovery=raw is not None,
            raw_timeout=raw,
        )

    def _run(self, cmd: List[str]) -> str:
        # smartctl encodes drive health in its exit status bits, so only the
        # output text is meaningful here.
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=self.timeout)
        except OSError as e:
            logger.debug(f"Cannot run {cmd[0]}: {e}")
            return ""
        except subprocess.TimeoutExpired:
            logger.warning(f"{' '.join(cmd)} timed out after {self.timeout}s")
            return ""
        return result.stdout
