"""Drive registry reconciliation.

For each drive reading:

* no serial: skipped
* serial not registered: appended with ``is_raid_disk=unknown``, nothing applied
* registered, not marked ``yes``: left alone
* registered and marked ``yes``: SCT ERC set to 7s if the drive supports it
  right now, otherwise the kernel SCSI timeout raised to 180s

There is no "already applied" marker; every run re-applies the same timeouts.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional

from sctercset.core.logger import get_logger
from sctercset.core.registry import DriveRegistry
from sctercset.models.drive import ActionKind, CorrectiveAction, DriveReading, RegistryRow

logger = get_logger(__name__)

FAST_RECOVERY_CENTISECONDS = 70
HOST_TIMEOUT_SECONDS = 180


class Outcome(Enum):
    """What happened to one drive during a run."""
    SKIPPED = "skipped"
    NEW = "new"
    UNCHANGED = "unchanged"
    APPLIED = "applied"
    FAILED = "failed"


@dataclass
class DriveResult:
    reading: DriveReading
    outcome: Outcome
    action: Optional[CorrectiveAction] = None
    row: Optional[RegistryRow] = None


@dataclass
class ReconcileReport:
    """Per-drive results of one run, in probe order."""

    results: List[DriveResult] = field(default_factory=list)

    @property
    def actions(self) -> List[CorrectiveAction]:
        """Every corrective action issued, whether or not it succeeded."""
        return [r.action for r in self.results if r.action is not None]

    @property
    def new_drives(self) -> List[RegistryRow]:
        return [r.row for r in self.results if r.outcome == Outcome.NEW]

    @property
    def failed(self) -> List[DriveResult]:
        return [r for r in self.results if r.outcome == Outcome.FAILED]


class DriveReconciler:
    """Reconciles drive readings against the registry and applies timeouts."""

    def __init__(
        self,
        registry: DriveRegistry,
        applicator,
        fast_recovery_centiseconds: int = FAST_RECOVERY_CENTISECONDS,
        host_timeout_seconds: int = HOST_TIMEOUT_SECONDS,
        on_result=None,
    ):
        """
        Args:
            registry: Loaded drive registry; new rows are appended to it
            applicator: Object with ``apply(CorrectiveAction) -> bool``
            fast_recovery_centiseconds: SCT ERC timeout for capable drives
            host_timeout_seconds: SCSI command timeout for drives without SCT ERC
            on_result: Optional callback invoked with each DriveResult as it is produced
        """
        self.registry = registry
        self.applicator = applicator
        self.fast_recovery_centiseconds = fast_recovery_centiseconds
        self.host_timeout_seconds = host_timeout_seconds
        self.on_result = on_result

    def reconcile(self, readings: Iterable[DriveReading]) -> ReconcileReport:
        """Process readings one at a time, in order.

        Raises:
            RegistryError: If a new drive cannot be written to the registry.
        """
        report = ReconcileReport()
        for reading in readings:
            result = self.reconcile_one(reading)
            report.results.append(result)
            if self.on_result is not None:
                self.on_result(result)
        return report

    def reconcile_one(self, reading: DriveReading) -> DriveResult:
        if not reading.serial:
            logger.debug(f"Skipping {reading.device_id}: no serial")
            return DriveResult(reading, Outcome.SKIPPED)

        row = self.registry.get(reading.serial)
        if row is None:
            row = RegistryRow.from_reading(reading)
            self.registry.append(row)
            logger.debug(f"New drive {reading.serial} on {reading.device_id} registered")
            return DriveResult(reading, Outcome.NEW, row=row)

        if not row.is_raid_member:
            logger.debug(f"{reading.serial}: is_raid_disk={row.raid_membership!r}, no action")
            return DriveResult(reading, Outcome.UNCHANGED, row=row)

        action = self.plan_action(reading)
        if self.applicator.apply(action):
            logger.debug(f"{action.description} on {reading.device_id} (Serial: {reading.serial})")
            return DriveResult(reading, Outcome.APPLIED, action=action, row=row)
        return DriveResult(reading, Outcome.FAILED, action=action, row=row)

    def plan_action(self, reading: DriveReading) -> CorrectiveAction:
        """Pick the timeout change from the live reading, never the stored snapshot."""
        if reading.supports_fast_recovery:
            return CorrectiveAction(
                kind=ActionKind.SET_FAST_RECOVERY_TIMEOUT,
                device_id=reading.device_id,
                serial=reading.serial,
                value=self.fast_recovery_centiseconds,
            )
        return CorrectiveAction(
            kind=ActionKind.SET_HOST_TIMEOUT,
            device_id=reading.device_id,
            serial=reading.serial,
            value=self.host_timeout_seconds,
        )
