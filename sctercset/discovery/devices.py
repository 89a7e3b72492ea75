"""Block device enumeration."""
import glob
import os
from typing import Iterable, Iterator, List, Optional

from sctercset.core.config import DEFAULT_DEVICE_PATTERNS
from sctercset.core.logger import get_logger

logger = get_logger(__name__)


class DeviceEnumerator:
    """Yields existing block devices matching a list of glob patterns.

    Patterns are expanded in order and each expansion is sorted, so with the
    defaults /dev/sda..sdz come before /dev/sdaa..sdzz.
    """

    def __init__(self, patterns: Optional[List[str]] = None, exists=None):
        self.patterns = list(patterns) if patterns else list(DEFAULT_DEVICE_PATTERNS)
        self.exists = exists or os.path.exists

    def devices(self, explicit: Optional[Iterable[str]] = None) -> Iterator[str]:
        """Devices to probe.

        Args:
            explicit: Device paths given on the command line; when set the
                glob patterns are not used.
        """
        candidates = list(explicit) if explicit else self._expand()
        seen = set()
        for device in candidates:
            if device in seen:
                continue
            seen.add(device)
            if not self.exists(device):
                logger.debug(f"Skipping {device}: no such device")
                continue
            yield device

    def _expand(self) -> List[str]:
        found: List[str] = []
        for pattern in self.patterns:
            found.extend(sorted(glob.glob(pattern)))
        return found
