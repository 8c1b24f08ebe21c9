"""MockExecutor and shared fixtures for testing."""
from __future__ import annotations

import io
import subprocess
from unittest.mock import MagicMock

LIST_CMD = ("zfs", "list", "-H", "-t", "snapshot", "-o", "name", "-s", "name")


class MockExecutor:
    """
    Executor that returns pre-scripted responses for commands.

    responses: dict mapping tuple(cmd) -> stdout string, or an Exception to raise.
    If the command isn't found, raises KeyError (to catch unexpected calls in tests).

    popen_returncodes: dict mapping a command's first three words
    (e.g. ("zfs", "recv", "-vF")) to the exit code its process reports.
    """

    def __init__(
        self,
        responses: dict | None = None,
        popen_returncodes: dict | None = None,
        label: str = "mock",
    ):
        self.responses: dict = responses or {}
        self.popen_returncodes: dict = popen_returncodes or {}
        self._label = label
        self.calls: list[list[str]] = []  # record of all commands run
        self.popen_calls: list[list[str]] = []

    @property
    def label(self) -> str:
        return self._label

    def run(self, cmd: list[str]) -> str:
        self.calls.append(cmd)
        key = tuple(cmd)
        if key not in self.responses:
            raise KeyError(f"MockExecutor: unexpected command: {cmd}")
        result = self.responses[key]
        if isinstance(result, Exception):
            raise result
        return result

    def popen(self, cmd: list[str], **_kwargs) -> subprocess.Popen:
        """
        For send/recv pipe tests: record the call and return a mock Popen
        object that exits with the scripted return code (0 by default).
        """
        self.calls.append(cmd)
        self.popen_calls.append(cmd)
        rc = self.popen_returncodes.get(tuple(cmd[:3]), 0)

        mock_proc = MagicMock(spec=subprocess.Popen)
        mock_proc.stdout = io.BytesIO(b"")
        mock_proc.stdin = io.BytesIO(b"")
        mock_proc.returncode = rc
        mock_proc.wait.return_value = rc
        return mock_proc

    def commands(self, *prefix: str) -> list[list[str]]:
        """Return recorded commands starting with the given words."""
        n = len(prefix)
        return [c for c in self.calls if tuple(c[:n]) == prefix]


# ---------------------------------------------------------------------------
# A mixed listing: two labels on the source, a backup holding one shared
# snapshot, an older backup-only snapshot and one under another label.
# ---------------------------------------------------------------------------

EXAMPLE_SNAPS = [
    "tank/var/log@2021-06-03-1800-00-TEST",
    "tank/var/log@2021-01-01-1300-12-TEST",
    "tank/var/log@2022-10-05-1953-12-TEST",
    "tank/var/log@2022-09-29-1512-00-CHECKPOINT",
    "backup/tank/var/log@2020-05-13-0013-23-TEST",
    "backup/tank/var/log@2021-07-23-0548-19-LOL",
    "backup/tank/var/log@2021-06-03-1800-00-TEST",
]


def snap_list_output(full_names: list[str]) -> str:
    return "\n".join(full_names) + "\n"


def make_responses(
    snaps: list[str] | None = None,
    pools: tuple[str, ...] = ("backup", "tank"),
    missing_pools: tuple[str, ...] = (),
) -> dict:
    """Return a MockExecutor responses dict for a listing and pool statuses."""
    from zlb.executor import ExecutorError

    if snaps is None:
        snaps = EXAMPLE_SNAPS
    responses = {LIST_CMD: snap_list_output(snaps) if snaps else ""}
    for pool in pools:
        responses[("zpool", "status", pool)] = f"  pool: {pool}\n state: ONLINE\n"
    for pool in missing_pools:
        responses[("zpool", "status", pool)] = ExecutorError(
            ["zpool", "status", pool], 1, f"cannot open '{pool}': no such pool"
        )
    return responses
