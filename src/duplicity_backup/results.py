"""Typed results derived from duplicity exit codes and output."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Protocol, Union


class VerifyOutcome(enum.Enum):
    NO_CHANGES = "no_changes"
    IS_CHANGED = "is_changed"
    NO_BACKUP_FOUND = "no_backup_found"
    CORRUPT_DATA = "corrupt_data"


_VERIFY_EXIT_CODES: Dict[int, VerifyOutcome] = {
    0: VerifyOutcome.NO_CHANGES,
    1: VerifyOutcome.IS_CHANGED,
    30: VerifyOutcome.NO_BACKUP_FOUND,
}


class BackupKind(enum.Enum):
    FULL = "Full"
    INCREMENTAL = "Incremental"


@dataclass(frozen=True)
class BackupEntry:
    kind: BackupKind
    timestamp: datetime


@dataclass(frozen=True)
class Success:
    exit_code: int = 0

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    exit_code: int

    @property
    def ok(self) -> bool:
        return False


OperationResult = Union[Success, Failure]


class CatalogParser(Protocol):
    def parse(self, lines: Iterable[str]) -> List[BackupEntry]:
        ...


def interpret_verify(exit_code: int) -> VerifyOutcome:
    """Map a ``verify`` exit code to an outcome.

    Unrecognized codes are reported as corrupt data so that an unknown failure
    is never mistaken for success.
    """
    return _VERIFY_EXIT_CODES.get(exit_code, VerifyOutcome.CORRUPT_DATA)


def interpret_exit(exit_code: int) -> OperationResult:
    if exit_code == 0:
        return Success()
    return Failure(exit_code)


def interpret_catalog(exit_code: int, lines: Iterable[str], parser: CatalogParser) -> List[BackupEntry]:
    # A destination without backups makes collection-status fail; that is an empty catalog.
    if exit_code != 0:
        return []
    return parser.parse(lines)
