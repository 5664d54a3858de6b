"""Backup and restore package."""

from bizledger.backup.service import BackupService, ImportFormatError

__all__ = ["BackupService", "ImportFormatError"]
