"""Drive registry persistence.

The registry is a flat CSV file with one row per drive ever seen:

    drive_serial,sctert_support,is_raid_disk
    ABC123DE,yes,yes
    FGH4I567,yes,no

New drives are appended with ``is_raid_disk`` set to ``unknown``; the operator
edits that column between runs. Appending is the only write this module does.
"""
from pathlib import Path
from typing import Dict, Iterator, List, Optional

from sctercset.core.errors import RegistryError
from sctercset.core.logger import get_logger
from sctercset.models.drive import RegistryRow

logger = get_logger(__name__)

HEADER = "drive_serial,sctert_support,is_raid_disk"


class DriveRegistry:
    """Serial-keyed table of known drives, backed by a CSV file."""

    def __init__(self, path: Path, read_only: bool = False):
        """Load the registry.

        Args:
            path: Registry CSV file. A missing or empty file is an empty registry.
            read_only: Keep appended rows in memory only (dry runs)
        """
        self.path = Path(path)
        self.read_only = read_only
        self._rows: Dict[str, RegistryRow] = {}
        self._load()

    def _load(self) -> None:
        if not self.path.exists():
            logger.debug(f"No registry at {self.path}, starting empty")
            return

        try:
            text = self.path.read_text(encoding="utf-8-sig")
        except (IOError, OSError, UnicodeDecodeError) as e:
            raise RegistryError(f"Failed to read registry {self.path}: {e}") from e

        for lineno, line in enumerate(text.splitlines(), start=1):
            line = line.rstrip("\r\n")
            if not line:
                continue
            if lineno == 1 and line == HEADER:
                continue

            parts = line.split(",")
            if len(parts) < 3:
                logger.warning(f"{self.path}:{lineno}: ignoring malformed row {line!r}")
                continue

            serial, support, raid = parts[0], parts[1], parts[2]
            if serial in self._rows:
                logger.warning(f"{self.path}:{lineno}: duplicate serial {serial}, keeping first row")
                continue
            self._rows[serial] = RegistryRow(serial, support, raid)

        logger.debug(f"Loaded {len(self._rows)} drive(s) from {self.path}")

    def get(self, serial: str) -> Optional[RegistryRow]:
        """Exact-match lookup by serial."""
        return self._rows.get(serial)

    def append(self, row: RegistryRow) -> None:
        """Persist a new row.

        Raises:
            RegistryError: If the serial is already registered or the file
                cannot be written.
        """
        if row.serial in self._rows:
            raise RegistryError(f"Drive {row.serial} is already registered")

        if self.read_only:
            logger.info(f"MOCK: Would register {row.to_line()} in {self.path}")
            self._rows[row.serial] = row
            return

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            needs_header = not self.path.exists() or self.path.stat().st_size == 0
            needs_newline = not needs_header and not self._ends_with_newline()
            with open(self.path, "a", encoding="utf-8") as f:
                if needs_header:
                    f.write(HEADER + "\n")
                elif needs_newline:
                    # hand-edited file without a trailing newline
                    f.write("\n")
                f.write(row.to_line() + "\n")
        except (IOError, OSError) as e:
            raise RegistryError(f"Failed to write registry {self.path}: {e}") from e

        self._rows[row.serial] = row
        logger.debug(f"Registered drive {row.serial} in {self.path}")

    def _ends_with_newline(self) -> bool:
        with open(self.path, "rb") as f:
            f.seek(-1, 2)
            return f.read(1) == b"\n"

    def rows(self) -> List[RegistryRow]:
        """Rows in file order."""
        return list(self._rows.values())

    def __contains__(self, serial: str) -> bool:
        return serial in self._rows

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self) -> Iterator[RegistryRow]:
        return iter(self._rows.values())
