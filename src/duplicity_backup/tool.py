"""Caller-facing wrapper around the duplicity command line.

Only local directory destinations (``file://``) are supported.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional, Union

from .catalog import CollectionStatusParser
from .commands import COMPARE_DATA_IMPLICIT_BELOW, CommandBuilder, Invocation, RestoreRequest
from .errors import DirectoryNotFoundError, ToolNotFoundError
from .executor import FilesystemProbe, LocalFilesystemProbe, PathLike, ProcessExecutor, SubprocessExecutor
from .options import OptionSet
from .results import (
    BackupEntry,
    CatalogParser,
    OperationResult,
    VerifyOutcome,
    interpret_catalog,
    interpret_exit,
    interpret_verify,
)
from .version import ToolVersion, VersionGate

LOG = logging.getLogger(__name__)

RestoreTime = Union[datetime, int, float]


class Duplicity:
    """Backs up ``directory`` into ``destination`` and reads it back.

    The constructor fails with :class:`ToolNotFoundError` when duplicity is not
    installed and with :class:`DirectoryNotFoundError` when ``directory`` does
    not exist. Non-zero exit codes are returned as typed results, never raised.
    """

    def __init__(
        self,
        directory: PathLike,
        destination: PathLike,
        executor: Optional[ProcessExecutor] = None,
        probe: Optional[FilesystemProbe] = None,
        parser: Optional[CatalogParser] = None,
        options: Optional[OptionSet] = None,
    ) -> None:
        self._executor = executor or SubprocessExecutor()
        self._probe = probe or LocalFilesystemProbe()
        self._parser = parser or CollectionStatusParser()
        self._gate = VersionGate(self._executor)
        self._lock = threading.RLock()
        self._output: List[str] = []

        if not self.is_installed():
            raise ToolNotFoundError("Duplicity not installed")
        if not self._probe.exists(directory):
            raise DirectoryNotFoundError(f"Directory path is invalid: {directory}")

        self._options = options if options is not None else OptionSet()
        self._builder = CommandBuilder(directory, destination, self._options, self._gate, self._probe)

    # Introspection ---------------------------------------------------------
    def is_installed(self) -> bool:
        with self._lock:
            return self._gate.is_installed()

    def get_version(self) -> ToolVersion:
        with self._lock:
            return self._gate.get_version()

    def compares_data_implicitly(self) -> bool:
        """True when the installed duplicity compares data on every verify."""
        return self.get_version() < COMPARE_DATA_IMPLICIT_BELOW

    def get_output(self) -> List[str]:
        return list(self._output)

    @property
    def options(self) -> OptionSet:
        return self._options

    # Configuration ---------------------------------------------------------
    def set_passphrase(self, passphrase: str) -> None:
        self._builder.set_passphrase(passphrase)

    def set_excluded_subdirectories(self, subdirectories: Iterable[str]) -> None:
        self._builder.set_excluded_subdirectories(subdirectories)

    def set_option(self, name: str, enabled: bool) -> None:
        self._builder.set_option(name, enabled)

    # Operations ------------------------------------------------------------
    def verify(self, compare_data: bool = True) -> VerifyOutcome:
        """Check that the latest backup is restorable.

        With ``compare_data`` the files in the source directory are compared
        with the backup, and a difference is reported as
        :attr:`VerifyOutcome.IS_CHANGED`. Duplicity older than 0.7 compares
        data even when ``compare_data`` is false.
        """
        with self._lock:
            if not compare_data and self.compares_data_implicitly():
                LOG.info(
                    "duplicity %s compares data on verify regardless of --compare-data",
                    self.get_version(),
                )
            exit_code = self._run(self._builder.build_verify(compare_data))
        return interpret_verify(exit_code)

    def execute(self, full: bool = False) -> OperationResult:
        with self._lock:
            return interpret_exit(self._run(self._builder.build_execute(full)))

    def get_collection_status(self) -> OperationResult:
        with self._lock:
            return interpret_exit(self._run(self._builder.build_collection_status()))

    def get_all_backups(self) -> List[BackupEntry]:
        with self._lock:
            exit_code = self._run(self._builder.build_collection_status())
            return interpret_catalog(exit_code, self._output, self._parser)

    def restore(self, time: RestoreTime, directory: PathLike) -> OperationResult:
        request = RestoreRequest(target_timestamp=_as_datetime(time), destination_directory=Path(directory))
        with self._lock:
            return interpret_exit(self._run(self._builder.build_restore(request)))

    def _run(self, invocation: Invocation) -> int:
        LOG.info("Running duplicity %s", " ".join(invocation.arguments))
        exit_code = self._executor.run(list(invocation.arguments), invocation.environment)
        self._output = self._executor.get_output()
        LOG.debug("duplicity exited with %s", exit_code)
        return exit_code


def _as_datetime(value: RestoreTime) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromtimestamp(value).astimezone()
