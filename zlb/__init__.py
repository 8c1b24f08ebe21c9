"""ZFS Labeled Backups: replicate labeled snapshots into a backup pool."""

APP_NAME = "zlb"
__version__ = "1.0.0"
LICENSE = "Simplified BSD License"
