"""Duplicity backup orchestration package."""

from __future__ import annotations

from .config import CoreConfig, load_config  # noqa: F401
from .errors import (  # noqa: F401
    ConfigurationError,
    DirectoryNotEmptyError,
    DirectoryNotFoundError,
    DirectoryNotReadableError,
    DuplicityError,
    InvalidArgumentError,
    ToolNotFoundError,
    UnsupportedOptionWarning,
)
from .orchestrator import BackupOrchestrator  # noqa: F401
from .results import BackupEntry, BackupKind, Failure, Success, VerifyOutcome  # noqa: F401
from .tool import Duplicity  # noqa: F401
from .version import ToolVersion, VersionGate  # noqa: F401
