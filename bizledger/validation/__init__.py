"""Validation package."""

from bizledger.validation.validator import LedgerValidator, ValidationError

__all__ = ["LedgerValidator", "ValidationError"]
