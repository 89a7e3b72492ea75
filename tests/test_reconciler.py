"""Tests for drive registry reconciliation."""
import pytest

from sctercset.core.errors import RegistryError
from sctercset.core.reconciler import DriveReconciler, Outcome
from sctercset.core.registry import HEADER, DriveRegistry
from sctercset.models.drive import ActionKind, DriveReading


def reading(device, serial, erc=True, raw="70"):
    return DriveReading(
        device_id=device,
        serial=serial,
        supports_fast_recovery=erc,
        raw_timeout=raw if erc else None,
    )


class TestNewDrives:
    """First sight of a serial."""

    def test_unknown_serial_is_registered(self, tmp_path, applicator):
        """New serial gets exactly one row with is_raid_disk=unknown."""
        path = tmp_path / "scterc_conf.csv"
        registry = DriveRegistry(path)
        reconciler = DriveReconciler(registry, applicator)

        report = reconciler.reconcile([reading("/dev/sda", "WD-123", erc=True)])

        assert [r.outcome for r in report.results] == [Outcome.NEW]
        assert path.read_text() == f"{HEADER}\nWD-123,yes,unknown\n"
        assert applicator.applied == []
        assert [row.serial for row in report.new_drives] == ["WD-123"]

    def test_new_drive_without_erc(self, tmp_path, applicator):
        """Snapshot records 'no' for drives without SCT ERC."""
        path = tmp_path / "scterc_conf.csv"
        reconciler = DriveReconciler(DriveRegistry(path), applicator)

        reconciler.reconcile([reading("/dev/sdb", "ST-9", erc=False)])

        assert path.read_text().splitlines()[-1] == "ST-9,no,unknown"

    def test_duplicate_serial_in_one_run(self, tmp_path, applicator):
        """First reading for a serial wins; the second sees the new row."""
        path = tmp_path / "scterc_conf.csv"
        reconciler = DriveReconciler(DriveRegistry(path), applicator)

        report = reconciler.reconcile([
            reading("/dev/sda", "DUP1", erc=True),
            reading("/dev/sdb", "DUP1", erc=False),
        ])

        assert [r.outcome for r in report.results] == [Outcome.NEW, Outcome.UNCHANGED]
        assert path.read_text().count("DUP1") == 1
        assert applicator.applied == []

    def test_registry_write_failure_propagates(self, tmp_path, applicator):
        """Unwritable registry aborts the run."""
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("")
        reconciler = DriveReconciler(DriveRegistry(blocker / "scterc_conf.csv"), applicator)

        with pytest.raises(RegistryError):
            reconciler.reconcile([reading("/dev/sda", "X1")])


class TestSkippedReadings:
    """Readings without a serial."""

    def test_empty_serial_is_skipped(self, tmp_path, applicator):
        path = tmp_path / "scterc_conf.csv"
        reconciler = DriveReconciler(DriveRegistry(path), applicator)

        report = reconciler.reconcile([reading("/dev/sda", "")])

        assert report.results[0].outcome == Outcome.SKIPPED
        assert not path.exists()
        assert applicator.applied == []
        assert report.new_drives == []


class TestRegisteredDrives:
    """Corrective actions for drives already in the registry."""

    @pytest.mark.parametrize("membership", ["no", "unknown", "Yes", "yes ", "y", ""])
    def test_only_literal_yes_triggers_action(self, tmp_path, applicator, membership):
        path = tmp_path / "scterc_conf.csv"
        path.write_text(f"{HEADER}\nSER1,yes,{membership}\n")
        reconciler = DriveReconciler(DriveRegistry(path), applicator)

        report = reconciler.reconcile([reading("/dev/sda", "SER1", erc=True)])

        assert report.results[0].outcome == Outcome.UNCHANGED
        assert applicator.applied == []

    def test_erc_drive_gets_seven_seconds(self, registry_file, applicator):
        reconciler = DriveReconciler(DriveRegistry(registry_file), applicator)

        report = reconciler.reconcile([reading("/dev/sda", "ABC123DE", erc=True)])

        assert report.results[0].outcome == Outcome.APPLIED
        action = applicator.applied[0]
        assert action.kind == ActionKind.SET_FAST_RECOVERY_TIMEOUT
        assert action.device_id == "/dev/sda"
        assert action.value == 70

    def test_non_erc_drive_gets_host_timeout(self, registry_file, applicator):
        reconciler = DriveReconciler(DriveRegistry(registry_file), applicator)

        reconciler.reconcile([reading("/dev/sdc", "ABC123DE", erc=False)])

        action = applicator.applied[0]
        assert action.kind == ActionKind.SET_HOST_TIMEOUT
        assert action.device_id == "/dev/sdc"
        assert action.value == 180

    def test_live_reading_beats_stored_snapshot(self, tmp_path, applicator):
        """Stored 'no' support does not stop SCT ERC being set on a capable drive."""
        path = tmp_path / "scterc_conf.csv"
        path.write_text(f"{HEADER}\nSER2,no,yes\n")
        reconciler = DriveReconciler(DriveRegistry(path), applicator)

        reconciler.reconcile([reading("/dev/sdd", "SER2", erc=True)])

        assert applicator.applied[0].kind == ActionKind.SET_FAST_RECOVERY_TIMEOUT
        # snapshot is left as it was
        assert path.read_text() == f"{HEADER}\nSER2,no,yes\n"

    def test_failed_action_reported_and_run_continues(self, registry_file, failing_applicator):
        reconciler = DriveReconciler(DriveRegistry(registry_file), failing_applicator)

        report = reconciler.reconcile([
            reading("/dev/sda", "ABC123DE"),
            reading("/dev/sdb", "NEW0001"),
        ])

        assert [r.outcome for r in report.results] == [Outcome.FAILED, Outcome.NEW]
        assert len(report.failed) == 1
        assert len(report.actions) == 1

    def test_custom_timeouts(self, registry_file, applicator):
        reconciler = DriveReconciler(
            DriveRegistry(registry_file),
            applicator,
            fast_recovery_centiseconds=100,
            host_timeout_seconds=240,
        )

        reconciler.reconcile([
            reading("/dev/sda", "ABC123DE", erc=True),
            reading("/dev/sdb", "ABC123DE", erc=False),
        ])

        assert [a.value for a in applicator.applied] == [100, 240]


class TestEndToEnd:
    """Whole runs against the documented example registry."""

    def test_documented_example(self, registry_file, applicator):
        """Only the drive marked yes is touched."""
        reconciler = DriveReconciler(DriveRegistry(registry_file), applicator)

        report = reconciler.reconcile([
            reading("/dev/sda", "ABC123DE", erc=True),
            reading("/dev/sdb", "FGH4I567", erc=True),
        ])

        assert len(applicator.applied) == 1
        assert applicator.applied[0].device_id == "/dev/sda"
        assert applicator.applied[0].kind == ActionKind.SET_FAST_RECOVERY_TIMEOUT
        assert report.results[1].outcome == Outcome.UNCHANGED

    def test_rerun_is_idempotent(self, registry_file, applicator):
        """Second run re-issues the same actions and appends nothing."""
        readings = [
            reading("/dev/sda", "ABC123DE", erc=True),
            reading("/dev/sdb", "FGH4I567", erc=True),
            reading("/dev/sdc", "ABC123DE", erc=False),
        ]
        before = registry_file.read_text()

        first = DriveReconciler(DriveRegistry(registry_file), applicator).reconcile(readings)
        second = DriveReconciler(DriveRegistry(registry_file), applicator).reconcile(readings)

        assert first.actions == second.actions
        assert len(applicator.applied) == 4
        assert registry_file.read_text() == before

    def test_new_drive_then_marked(self, tmp_path, applicator):
        """Register, let the operator mark it, then act on the next run."""
        path = tmp_path / "scterc_conf.csv"
        readings = [reading("/dev/sda", "WD-NEW", erc=False)]

        DriveReconciler(DriveRegistry(path), applicator).reconcile(readings)
        path.write_text(path.read_text().replace("WD-NEW,no,unknown", "WD-NEW,no,yes"))
        report = DriveReconciler(DriveRegistry(path), applicator).reconcile(readings)

        assert report.results[0].outcome == Outcome.APPLIED
        assert applicator.applied[0].kind == ActionKind.SET_HOST_TIMEOUT
