"""Drive and kernel timeout setters."""
import os
import subprocess
from pathlib import Path

from sctercset.core.logger import get_logger
from sctercset.models.drive import ActionKind, CorrectiveAction

logger = get_logger(__name__)


class TimeoutApplicator:
    """Applies SCT ERC and SCSI command timeouts.

    Both setters are fire-and-forget: a failure is logged and reported as
    False, and nothing reads the value back afterwards.
    """

    def __init__(self, smartctl: str = "smartctl", sysfs_block_root: Path = Path("/sys/block"),
                 mock: bool = False, timeout: int = 30):
        self.smartctl = smartctl
        self.sysfs_block_root = Path(sysfs_block_root)
        self.mock = mock
        self.timeout = timeout

    def apply(self, action: CorrectiveAction) -> bool:
        if action.kind == ActionKind.SET_FAST_RECOVERY_TIMEOUT:
            return self.set_fast_recovery_timeout(action.device_id, action.value)
        return self.set_host_timeout(action.device_id, action.value)

    def set_fast_recovery_timeout(self, device: str, centiseconds: int) -> bool:
        """Set the drive's SCT ERC read and write timeouts."""
        cmd = [self.smartctl, "-l", f"scterc,{centiseconds},{centiseconds}", device]
        if self.mock:
            logger.info(f"MOCK: Would run {' '.join(cmd)}")
            return True

        try:
            subprocess.run(cmd, capture_output=True, text=True, check=True, timeout=self.timeout)
            logger.debug(f"Set SCT ERC {centiseconds} on {device}")
            return True
        except subprocess.CalledProcessError as e:
            logger.warning(f"Failed to set SCT ERC on {device}: {e.stderr.strip() or e}")
            return False
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.warning(f"Failed to set SCT ERC on {device}: {e}")
            return False

    def set_host_timeout(self, device: str, seconds: int) -> bool:
        """Set the kernel SCSI command timeout of ``device``."""
        path = self.timeout_path(device)
        if self.mock:
            logger.info(f"MOCK: Would write {seconds} to {path}")
            return True

        try:
            path.write_text(f"{seconds}\n")
            logger.debug(f"Wrote {seconds} to {path}")
            return True
        except (IOError, OSError) as e:
            logger.warning(f"Failed to set SCSI timeout on {device}: {e}")
            return False

    def timeout_path(self, device: str) -> Path:
        """``/dev/sdb`` -> ``/sys/block/sdb/device/timeout``."""
        return self.sysfs_block_root / os.path.basename(device) / "device" / "timeout"
