"""Match source and backup snapshots for one dataset."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from zlb.models import DatasetCoordinates, Snapshot


class EmptySourceSetError(LookupError):
    """Raised when asking for the latest snapshot of an empty source set."""
    def __init__(self, dataset: str, label: str):
        self.dataset = dataset
        self.label = label
        super().__init__(f"No snapshots labeled {label!r} on {dataset}")


def select_snapshots(
    snapshots: Iterable[Snapshot],
    dataset: str,
    label: str,
    use_label: bool = True,
) -> list[Snapshot]:
    """Return the snapshots of a dataset, optionally only those with the label.

    The dataset match is a prefix test on "<dataset>@", so it never picks up
    siblings such as tank/var2 for tank/var. The label match is a plain suffix
    test on "-<label>": label TEST also selects ...-00-NIGHTLY-TEST.
    Input order is preserved.
    """
    prefix = f"{dataset}@"
    suffix = f"-{label}"
    results = []
    for snap in snapshots:
        if not snap.full_name.startswith(prefix):
            continue
        if use_label and not snap.full_name.endswith(suffix):
            continue
        results.append(snap)
    return results


def find_common_snapshot(
    src_snaps: list[Snapshot],
    backup_snaps: list[Snapshot],
    backup_pool: str,
) -> Snapshot | None:
    """Return the most recent source snapshot also present in the backup pool.

    A source snapshot tank/ds@x is present when backup_pool/tank/ds@x is in
    backup_snaps. The source-side snapshot is returned.
    """
    backup_names = {s.full_name for s in backup_snaps}
    # Iterate src newest→oldest
    for snap in reversed(src_snaps):
        if f"{backup_pool}/{snap.full_name}" in backup_names:
            return snap
    return None


@dataclass(frozen=True)
class ReconciliationResult:
    coords: DatasetCoordinates
    source_labeled: tuple[Snapshot, ...]
    backup_labeled: tuple[Snapshot, ...]
    # Backup snapshots under any label; only used to detect conflicts
    backup_all: tuple[Snapshot, ...]
    common: Snapshot | None

    @property
    def latest(self) -> Snapshot:
        if not self.source_labeled:
            raise EmptySourceSetError(self.coords.source_dataset, self.coords.label)
        return self.source_labeled[-1]


def reconcile(
    snapshots: list[Snapshot],
    coords: DatasetCoordinates,
) -> ReconciliationResult:
    """Reconcile a sorted snapshot population against one dataset."""
    source_labeled = select_snapshots(
        snapshots, coords.source_dataset, coords.label
    )
    backup_labeled = select_snapshots(
        snapshots, coords.backup_dataset, coords.label
    )
    backup_all = select_snapshots(
        snapshots, coords.backup_dataset, coords.label, use_label=False
    )
    common = find_common_snapshot(
        source_labeled, backup_labeled, coords.backup_pool
    )
    return ReconciliationResult(
        coords=coords,
        source_labeled=tuple(source_labeled),
        backup_labeled=tuple(backup_labeled),
        backup_all=tuple(backup_all),
        common=common,
    )
