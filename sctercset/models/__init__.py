"""Data models for sctercset."""
from sctercset.models.drive import (
    ActionKind,
    CorrectiveAction,
    DriveReading,
    RegistryRow,
    format_timeout,
)

__all__ = [
    'ActionKind',
    'CorrectiveAction',
    'DriveReading',
    'RegistryRow',
    'format_timeout',
]
