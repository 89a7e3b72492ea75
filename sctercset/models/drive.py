"""Drive reading, registry row and corrective action models."""
from dataclasses import dataclass
from enum import Enum
from typing import Optional

YES = "yes"
NO = "no"
UNKNOWN = "unknown"


def format_timeout(raw: Optional[str]) -> str:
    """Human-readable SCT ERC timeout.

    smartctl reports the value in units of 100 milliseconds, so ``70``
    becomes ``7s``.
    Non-numeric values such as ``Disabled`` are shown verbatim and an
    absent value is shown as blank.
    """
    if raw is None:
        return " "
    if raw.isdigit():
        return f"{int(raw) // 10}s"
    return raw


@dataclass(frozen=True)
class DriveReading:
    """Diagnostic reading for one block device during one run."""
    device_id: str                 # /dev/sda
    serial: str                    # empty when the drive gave no usable answer
    supports_fast_recovery: bool   # SCT ERC query returned a Read: value
    raw_timeout: Optional[str] = None

    @property
    def raw_timeout_centiseconds(self) -> Optional[int]:
        """Numeric SCT ERC read timeout, if the drive reported one."""
        if self.raw_timeout is not None and self.raw_timeout.isdigit():
            return int(self.raw_timeout)
        return None

    @property
    def timeout_display(self) -> str:
        return format_timeout(self.raw_timeout)

    @property
    def support_flag(self) -> str:
        """Registry spelling of the SCT ERC capability."""
        return YES if self.supports_fast_recovery else NO


@dataclass(frozen=True)
class RegistryRow:
    """One known drive in the registry file."""
    serial: str
    supports_fast_recovery: str   # "yes"/"no" snapshot from first sight
    raid_membership: str = UNKNOWN

    @property
    def is_raid_member(self) -> bool:
        """Only the exact literal ``yes`` marks a drive for corrective action."""
        return self.raid_membership == YES

    @classmethod
    def from_reading(cls, reading: DriveReading) -> "RegistryRow":
        return cls(
            serial=reading.serial,
            supports_fast_recovery=reading.support_flag,
            raid_membership=UNKNOWN,
        )

    def to_line(self) -> str:
        return f"{self.serial},{self.supports_fast_recovery},{self.raid_membership}"


class ActionKind(Enum):
    """Corrective action type."""
    SET_FAST_RECOVERY_TIMEOUT = "set_fast_recovery_timeout"
    SET_HOST_TIMEOUT = "set_host_timeout"


@dataclass(frozen=True)
class CorrectiveAction:
    """A timeout change requested for one RAID member drive.

    ``value`` is in centiseconds for SET_FAST_RECOVERY_TIMEOUT and in
    seconds for SET_HOST_TIMEOUT.
    """
    kind: ActionKind
    device_id: str
    serial: str
    value: int

    @property
    def description(self) -> str:
        if self.kind == ActionKind.SET_FAST_RECOVERY_TIMEOUT:
            return f"Set SCT ERC to {self.value // 10} seconds"
        return f"Set linux scsi timeout to {self.value} seconds"
