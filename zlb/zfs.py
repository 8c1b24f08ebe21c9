"""ZFS operations using an Executor for dependency injection."""
from __future__ import annotations

import shlex
import subprocess
from typing import TYPE_CHECKING

from zlb.executor import ExecutorError

if TYPE_CHECKING:
    from zlb.executor import Executor
    from zlb.models import Snapshot


def list_snapshot_names(executor: "Executor") -> list[str]:
    """Return the names of every snapshot on the system, in zfs order."""
    output = executor.run([
        "zfs", "list", "-H", "-t", "snapshot", "-o", "name", "-s", "name",
    ])
    return [line.strip() for line in output.splitlines() if line.strip()]


def is_pool_imported(pool: str, executor: "Executor") -> bool:
    """Return True if `zpool status` knows the pool."""
    try:
        executor.run(["zpool", "status", pool])
        return True
    except ExecutorError:
        return False


def create_dataset_tree(
    dataset: str,
    executor: "Executor",
    dry_run: bool = False,
    verbose: bool = False,
) -> None:
    """Create a dataset and any missing parents (no-op if it exists)."""
    cmd = ["zfs", "create", "-p", dataset]
    if dry_run or verbose:
        print(f"  [create] {shlex.join(cmd)}")
    if dry_run:
        return
    executor.run(cmd)


def send_full(
    snapshot: "Snapshot",
    dst_dataset: str,
    executor: "Executor",
    dry_run: bool = False,
    verbose: bool = False,
) -> None:
    """
    Send a complete snapshot stream into dst_dataset.

    Uses: zfs send -p pool/dataset@snap | zfs recv -vF dst_dataset

    -p carries the dataset properties along; -F lets the receive overwrite
    the empty dataset created by create_dataset_tree.
    """
    send_cmd = ["zfs", "send", "-p", snapshot.full_name]
    _send_recv(send_cmd, dst_dataset, executor, dry_run, verbose)


def send_incremental(
    common: "Snapshot",
    latest: "Snapshot",
    dst_dataset: str,
    executor: "Executor",
    dry_run: bool = False,
    verbose: bool = False,
) -> None:
    """
    Send the delta between common and latest to dst_dataset.

    Uses: zfs send -i pool/dataset@common pool/dataset@latest | zfs recv -vF dst_dataset
    """
    send_cmd = [
        "zfs", "send", "-i",
        common.full_name,
        latest.full_name,
    ]
    _send_recv(send_cmd, dst_dataset, executor, dry_run, verbose)


def _send_recv(
    send_cmd: list[str],
    dst_dataset: str,
    executor: "Executor",
    dry_run: bool,
    verbose: bool,
) -> None:
    recv_cmd = ["zfs", "recv", "-vF", dst_dataset]

    if dry_run or verbose:
        print(f"  [send] {shlex.join(send_cmd)}")
        print(f"  [recv ({executor.label})] {shlex.join(recv_cmd)}")

    if dry_run:
        return

    try:
        send_proc = executor.popen(send_cmd, stdout=subprocess.PIPE)
    except OSError as e:
        raise ExecutorError(send_cmd, 1, str(e)) from e
    try:
        recv_proc = executor.popen(recv_cmd, stdin=send_proc.stdout)
    except OSError as e:
        send_proc.kill()
        send_proc.wait()
        raise ExecutorError(recv_cmd, 1, str(e)) from e
    # Allow send_proc to receive SIGPIPE if recv_proc dies
    send_proc.stdout.close()

    recv_rc = recv_proc.wait()
    send_rc = send_proc.wait()

    if send_rc != 0 or recv_rc != 0:
        raise ExecutorError(
            send_cmd + ["|"] + recv_cmd,
            max(send_rc, recv_rc),
            f"send exited {send_rc}, recv exited {recv_rc}",
        )
