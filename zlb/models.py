"""Data models for zfs labeled backups."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

# Five timestamp fields followed by the label, e.g. 2022-09-27-1300-00-TEST
TIMESTAMP_FIELDS = 5


class MalformedSnapshotError(ValueError):
    """Raised when a name is not <dataset>@<timestamp>-<label>."""
    def __init__(self, full_name: str):
        self.full_name = full_name
        super().__init__(f"Not a labeled snapshot: {full_name!r}")


@dataclass(frozen=True, order=True)
class Snapshot:
    """A labeled ZFS snapshot: pool/dataset@YYYY-MM-DD-HHMM-SS-LABEL.

    Ordering and equality are those of the full name, which sorts
    chronologically within one dataset because the timestamp is fixed-width.
    """
    full_name: str

    @property
    def dataset(self) -> str:
        return self.full_name.split("@")[0]

    @property
    def name(self) -> str:
        """The part after '@'."""
        return self.full_name.split("@")[1]

    @property
    def timestamp_parts(self) -> tuple[str, ...]:
        return tuple(self.name.split("-")[:TIMESTAMP_FIELDS])

    @property
    def label(self) -> str:
        return "-".join(self.name.split("-")[TIMESTAMP_FIELDS:])

    def __str__(self) -> str:
        return self.full_name

    @staticmethod
    def is_valid_name(full_name: str) -> bool:
        parts = full_name.split("@")
        if len(parts) != 2 or not all(parts):
            return False
        fields = parts[1].split("-")
        if len(fields) <= TIMESTAMP_FIELDS:
            return False
        label = "-".join(fields[TIMESTAMP_FIELDS:])
        return all(fields[:TIMESTAMP_FIELDS]) and bool(label)

    @classmethod
    def parse(cls, full_name: str) -> "Snapshot":
        full_name = full_name.strip()
        if not cls.is_valid_name(full_name):
            raise MalformedSnapshotError(full_name)
        return cls(full_name=full_name)


def parse_all(lines: Iterable[str]) -> list[Snapshot]:
    """Parse raw listing lines into snapshots, sorted ascending.

    Lines that are not labeled snapshot names are dropped: listings may hold
    snapshots made by other tools. Duplicates are kept.
    """
    results = []
    for line in lines:
        try:
            results.append(Snapshot.parse(line))
        except MalformedSnapshotError:
            continue
    return sorted(results)


@dataclass(frozen=True)
class Dataset:
    name: str  # e.g. tank/var/log

    @property
    def pool(self) -> str:
        return self.name.split("/")[0]


@dataclass(frozen=True)
class DatasetCoordinates:
    """Where a source dataset lives, where it is backed up to, and its label."""
    backup_pool: str
    source_dataset: str
    label: str

    @property
    def source_pool(self) -> str:
        return Dataset(self.source_dataset).pool

    @property
    def backup_dataset(self) -> str:
        """Return the backup dataset path for the source dataset.

        Example: tank/var/log -> backup/tank/var/log
        """
        return f"{self.backup_pool}/{self.source_dataset}"


@dataclass
class JobConfig:
    backup_pool: str
    label: str
    datasets: list[str]          # source dataset names, processed in order

    @property
    def source_pools(self) -> list[str]:
        """Distinct source pool names, in the order they first appear."""
        return list(dict.fromkeys(Dataset(d).pool for d in self.datasets))

    def coordinates(self) -> list[DatasetCoordinates]:
        return [
            DatasetCoordinates(
                backup_pool=self.backup_pool,
                source_dataset=dataset,
                label=self.label,
            )
            for dataset in self.datasets
        ]
