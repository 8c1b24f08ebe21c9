"""Decide what replication a dataset needs from its reconciliation result."""
from __future__ import annotations

from dataclasses import dataclass

from zlb.models import Snapshot
from zlb.reconcile import ReconciliationResult

NO_SOURCE = "no_source"
UP_TO_DATE = "up_to_date"
INCREMENTAL = "incremental"
CONFLICT = "conflict"
FULL_SEND = "full_send"

ACTIONS = (NO_SOURCE, UP_TO_DATE, INCREMENTAL, CONFLICT, FULL_SEND)


@dataclass
class DatasetPlan:
    """Plan for a single dataset within a backup run."""
    src_dataset: str
    dst_dataset: str
    # One of ACTIONS
    action: str
    # For up_to_date / incremental
    common: Snapshot | None = None
    # For up_to_date / incremental / full_send
    latest: Snapshot | None = None
    # For conflict: backup snapshots already present under other labels
    existing_count: int = 0
    message: str = ""


def plan_dataset(result: ReconciliationResult) -> DatasetPlan:
    """Return the single terminal action for a reconciled dataset.

    no_source    no source snapshot carries the label
    up_to_date   the latest source snapshot is already on the backup
    incremental  send common..latest
    conflict     no common snapshot, but the backup dataset already holds
                 snapshots (under other labels); refuse to overwrite it
    full_send    no common snapshot and an empty backup dataset
    """
    plan = DatasetPlan(
        src_dataset=result.coords.source_dataset,
        dst_dataset=result.coords.backup_dataset,
        action=NO_SOURCE,
    )

    if not result.source_labeled:
        plan.message = (
            "No source snapshots available with the given dataset and label"
        )
        return plan

    latest = result.latest
    common = result.common
    plan.latest = latest
    plan.common = common

    if common is not None:
        if common == latest:
            plan.action = UP_TO_DATE
            plan.message = "Already up to date"
        else:
            plan.action = INCREMENTAL
            plan.message = f"Incremental send {common} -> {latest}"
        return plan

    if result.backup_all:
        plan.action = CONFLICT
        plan.existing_count = len(result.backup_all)
        plan.message = (
            f"Backup pool already contains ({plan.existing_count}) snapshots "
            f"for this dataset but none in common with the source "
            f"(different label?). Will not do a full send"
        )
        return plan

    plan.action = FULL_SEND
    plan.message = f"Full send of {latest}"
    return plan
