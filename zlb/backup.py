"""Backup run orchestration: replicate labeled snapshots into the backup pool."""
from __future__ import annotations

import os
import sys
from typing import TYPE_CHECKING

from zlb import zfs
from zlb.executor import ExecutorError
from zlb.models import parse_all
from zlb.planner import (
    CONFLICT,
    FULL_SEND,
    INCREMENTAL,
    NO_SOURCE,
    UP_TO_DATE,
    DatasetPlan,
    plan_dataset,
)
from zlb.reconcile import reconcile

if TYPE_CHECKING:
    from zlb.executor import Executor
    from zlb.models import JobConfig

# ANSI color codes (respect NO_COLOR convention: https://no-color.org)
if os.environ.get("NO_COLOR") is not None:
    GREEN = RED = YELLOW = RESET = ""
else:
    GREEN = "\033[32m"
    RED = "\033[31m"
    YELLOW = "\033[33m"
    RESET = "\033[0m"


class PreconditionError(Exception):
    """A condition that makes the whole run unsafe."""


class PoolNotImportedError(PreconditionError):
    def __init__(self, pool: str):
        self.pool = pool
        super().__init__(f"{pool} pool is not imported")


class SourcePoolIsBackupPoolError(PreconditionError):
    def __init__(self, pool: str):
        self.pool = pool
        super().__init__(
            f"Source pool {pool} is the backup pool. "
            "All source datasets must live outside of the backup pool"
        )


def check_pools(config: "JobConfig", executor: "Executor") -> None:
    """Raise PreconditionError unless every involved pool is usable."""
    if not zfs.is_pool_imported(config.backup_pool, executor):
        raise PoolNotImportedError(config.backup_pool)
    for pool in config.source_pools:
        if pool == config.backup_pool:
            raise SourcePoolIsBackupPoolError(pool)
        if not zfs.is_pool_imported(pool, executor):
            raise PoolNotImportedError(pool)


def _print_plan(plan: DatasetPlan, n_source: int, n_backup: int) -> None:
    print(f"\n{'-'*15}")
    print(plan.src_dataset)
    print(f"{'-'*15}\n")
    print(f"Source Snapshots Count: {n_source}")
    print(f"Backup Snapshots Count: {n_backup}")
    if plan.latest is not None:
        print(f"Latest Snapshot: {plan.latest}")
    if plan.common is not None:
        print(f"Common Snapshot: {plan.common}")
    elif plan.action in (CONFLICT, FULL_SEND):
        print("No common snapshot found.")


def _execute(
    plan: DatasetPlan,
    executor: "Executor",
    dry_run: bool,
    verbose: bool,
) -> bool:
    """Carry out a transfer plan. Return False if it failed."""
    if plan.action == INCREMENTAL:
        print(f"Sending incremental backup for {plan.common} -> {plan.latest} ...")
        try:
            zfs.send_incremental(
                common=plan.common,
                latest=plan.latest,
                dst_dataset=plan.dst_dataset,
                executor=executor,
                dry_run=dry_run,
                verbose=verbose,
            )
        except ExecutorError as e:
            print(
                f"  {RED}ERROR: An error occurred while sending the "
                f"incremental backup: {e}{RESET}",
                file=sys.stderr,
            )
            return False
        if not dry_run:
            print(f"  {GREEN}Incremental backup finished successfully!{RESET}")
        return True

    # Full send: the target dataset must exist before receiving into it
    print(f"Creating backup dataset hierarchy for {plan.dst_dataset} (if needed) ...")
    try:
        zfs.create_dataset_tree(
            plan.dst_dataset, executor, dry_run=dry_run, verbose=verbose
        )
    except ExecutorError as e:
        print(
            f"  {RED}ERROR: Failed to create backup dataset hierarchy. "
            f"Perhaps your user doesn't have enough permissions for the "
            f"'zfs' command? ({e}){RESET}",
            file=sys.stderr,
        )
        return False

    print(f"Sending full backup for {plan.latest} ...")
    try:
        zfs.send_full(
            plan.latest,
            plan.dst_dataset,
            executor,
            dry_run=dry_run,
            verbose=verbose,
        )
    except ExecutorError as e:
        print(
            f"  {RED}ERROR: An error occurred while sending the full "
            f"backup: {e}{RESET}",
            file=sys.stderr,
        )
        return False
    if not dry_run:
        print(f"  {GREEN}Full backup finished successfully!{RESET}")
    return True


def run_backup(
    config: "JobConfig",
    executor: "Executor",
    dry_run: bool = False,
    verbose: bool = False,
) -> int:
    """
    Run a backup job. Returns exit code (0=success, 1=failure).

    Snapshots are listed once; each dataset is then reconciled, planned and
    transferred in the order given. A failure on one dataset does not stop
    the others. Pool problems abort the run before any transfer.
    """
    try:
        check_pools(config, executor)
    except PreconditionError as e:
        print(f"{RED}ERROR: {e}. Aborting.{RESET}", file=sys.stderr)
        return 1

    try:
        names = zfs.list_snapshot_names(executor)
    except ExecutorError as e:
        print(f"{RED}ERROR: Could not list snapshots: {e}{RESET}", file=sys.stderr)
        return 1
    snapshots = parse_all(names)

    print(f"Backup Pool: {config.backup_pool}")
    print(f"Label: {config.label}")
    print(f"Total Snapshots Count: {len(snapshots)}")
    if verbose and len(names) != len(snapshots):
        print(f"  Ignored {len(names) - len(snapshots)} snapshot(s) "
              f"without a timestamp-label name")

    counts = dict.fromkeys((NO_SOURCE, UP_TO_DATE, CONFLICT), 0)
    sent_count = 0
    error_count = 0

    for coords in config.coordinates():
        result = reconcile(snapshots, coords)
        plan = plan_dataset(result)
        _print_plan(plan, len(result.source_labeled), len(result.backup_labeled))

        if plan.action == NO_SOURCE:
            print(f"{YELLOW}{plan.message}. Skipping.{RESET}")
            counts[NO_SOURCE] += 1
        elif plan.action == UP_TO_DATE:
            print(f"{GREEN}You are already up to date!{RESET}")
            counts[UP_TO_DATE] += 1
        elif plan.action == CONFLICT:
            print(f"{YELLOW}{plan.message}. Skipping.{RESET}")
            counts[CONFLICT] += 1
        elif _execute(plan, executor, dry_run, verbose):
            sent_count += 1
        else:
            error_count += 1

    # --- Summary ---
    print(f"\n{'='*60}")
    prefix = "[dry-run] " if dry_run else ""
    print(f"{prefix}Backup complete.")
    parts = []
    if sent_count:
        parts.append(f"{sent_count} dataset(s) sent")
    if counts[UP_TO_DATE]:
        parts.append(f"{counts[UP_TO_DATE]} already up to date")
    if counts[NO_SOURCE]:
        parts.append(f"{counts[NO_SOURCE]} skipped")
    if counts[CONFLICT]:
        parts.append(f"{YELLOW}{counts[CONFLICT]} conflict(s){RESET}")
    if error_count:
        parts.append(f"{RED}{error_count} error(s){RESET}")
    if parts:
        print(f"  {', '.join(parts)}")

    return 1 if error_count else 0
