"""Load and validate job configuration from YAML files or CLI values."""
from __future__ import annotations

import yaml

from zlb.models import JobConfig


class ConfigError(Exception):
    pass


def _check_pool(pool) -> str:
    name = str(pool).strip() if pool is not None else ""
    if not name:
        raise ConfigError("destination.pool is required")
    if "/" in name or "@" in name:
        raise ConfigError(f"Invalid backup pool name: {name!r}")
    return name


def _check_label(label) -> str:
    name = str(label).strip() if label is not None else ""
    if not name:
        raise ConfigError("'label' is required")
    if "/" in name or "@" in name:
        raise ConfigError(f"Invalid label: {name!r}")
    return name


def _check_datasets(datasets_raw) -> list[str]:
    if not datasets_raw:
        raise ConfigError("'datasets' list is required")
    if isinstance(datasets_raw, str):
        raise ConfigError("'datasets' must be a list")
    datasets = []
    for d in datasets_raw:
        name = str(d).strip() if d is not None else ""
        if not name or "@" in name:
            raise ConfigError(f"Invalid dataset entry: {d!r}")
        datasets.append(name.rstrip("/"))
    return datasets


def make_job(backup_pool, label, datasets) -> JobConfig:
    """Validate raw values into a JobConfig."""
    return JobConfig(
        backup_pool=_check_pool(backup_pool),
        label=_check_label(label),
        datasets=_check_datasets(datasets),
    )


def load_raw(path: str) -> dict:
    """Read a job file and return its top-level values, unvalidated.

    Keys: backup_pool, label, datasets (missing keys map to None).
    """
    with open(path) as f:
        raw = yaml.safe_load(f)

    if not isinstance(raw, dict):
        raise ConfigError(f"Config must be a YAML mapping: {path}")

    dst_raw = raw.get("destination") or {}
    if not isinstance(dst_raw, dict):
        raise ConfigError("'destination' must be a mapping")

    return {
        "backup_pool": dst_raw.get("pool"),
        "label": raw.get("label"),
        "datasets": raw.get("datasets"),
    }


def load_job(path: str) -> JobConfig:
    raw = load_raw(path)
    return make_job(raw["backup_pool"], raw["label"], raw["datasets"])
