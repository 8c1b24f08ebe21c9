"""CLI entry point for zfs labeled backups."""
from __future__ import annotations

import argparse
import sys

from zlb import APP_NAME, LICENSE, __version__
from zlb.config import ConfigError, load_job, load_raw, make_job
from zlb.executor import LocalExecutor


def print_header() -> None:
    print("-" * 30)
    print(f"{APP_NAME} - {__version__}")
    print(LICENSE)
    print("-" * 30 + "\n")


def _resolve_job(args):
    """Build the JobConfig from the job file and/or positional arguments."""
    if args.config and args.backup_pool is None:
        return load_job(args.config)

    raw = {"backup_pool": None, "label": None, "datasets": None}
    if args.config:
        raw = load_raw(args.config)
    if args.backup_pool is not None:
        raw["backup_pool"] = args.backup_pool
    if args.label is not None:
        raw["label"] = args.label
    if args.datasets:
        raw["datasets"] = args.datasets
    return make_job(raw["backup_pool"], raw["label"], raw["datasets"])


def cmd_backup(args) -> int:
    from zlb.backup import run_backup
    try:
        config = _resolve_job(args)
    except (ConfigError, FileNotFoundError) as e:
        print(f"Config error: {e}", file=sys.stderr)
        return 1

    return run_backup(
        config=config,
        executor=LocalExecutor(),
        dry_run=args.dry_run,
        verbose=args.verbose,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Replicate labeled ZFS snapshots into a backup pool",
    )
    parser.add_argument("--version", action="version",
                        version=f"%(prog)s {__version__}")
    parser.add_argument("--dry-run", "-n", action="store_true",
                        help="Performs a dry run. Does not require root privileges.")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Show every zfs command that is run")
    parser.add_argument("--config", "-c",
                        help="Path to job YAML config file")
    parser.add_argument("backup_pool", nargs="?",
                        help="Pool that receives the backups")
    parser.add_argument("label", nargs="?",
                        help="Only snapshots ending in -LABEL are replicated")
    parser.add_argument("datasets", nargs="*",
                        help="Source datasets to back up")
    return parser


def main(argv=None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.config and not (args.backup_pool and args.label and args.datasets):
        parser.error("BACKUP_POOL, LABEL and at least one DATASET are required "
                     "unless --config is given")
    print_header()
    sys.exit(cmd_backup(args))


if __name__ == "__main__":
    main()
