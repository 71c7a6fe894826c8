"""Assembly of duplicity argument lists and environments."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path, PurePosixPath
from typing import Dict, Iterable, List, Optional, Tuple

from .errors import (
    DirectoryNotEmptyError,
    DirectoryNotFoundError,
    DirectoryNotReadableError,
    InvalidArgumentError,
)
from .executor import FilesystemProbe, PathLike
from .options import NO_ENCRYPTION, OptionSet, SupportsVersionCheck
from .version import ToolVersion

TARGET_SCHEME = "file://"
PASSPHRASE_ENV = "PASSPHRASE"
EXCLUDE_FLAG = "--exclude"
EXCLUDE_GLOB_PREFIX = "**/"

# Below this version `verify` compares file data whether or not --compare-data
# is given (https://bugs.launchpad.net/duplicity/+bug/1354880). Callers that
# need a metadata-only verify on such versions cannot get one.
COMPARE_DATA_IMPLICIT_BELOW = ToolVersion("0.7")


@dataclass(frozen=True)
class Invocation:
    arguments: Tuple[str, ...]
    environment: Dict[str, str] = field(default_factory=dict, repr=False)


@dataclass(frozen=True)
class RestoreRequest:
    target_timestamp: datetime
    destination_directory: Path


def format_timestamp(value: datetime) -> str:
    """Render a W3C date-time; naive values are taken as local time."""
    if value.tzinfo is None:
        value = value.astimezone()
    return value.isoformat(timespec="seconds")


class CommandBuilder:
    """Builds invocations for verify, backup, collection-status and restore."""

    def __init__(
        self,
        source_directory: PathLike,
        destination: PathLike,
        options: OptionSet,
        gate: SupportsVersionCheck,
        probe: FilesystemProbe,
    ) -> None:
        self._source = str(source_directory)
        self._destination = str(destination)
        self._options = options
        self._gate = gate
        self._probe = probe
        self._excluded: List[str] = []
        self._passphrase: Optional[str] = None

    @property
    def target(self) -> str:
        return f"{TARGET_SCHEME}{self._destination}"

    @property
    def excluded_subdirectories(self) -> List[str]:
        return list(self._excluded)

    def set_excluded_subdirectories(self, subdirectories: Iterable[str]) -> None:
        """Exclude subdirectories of the source, e.g. ``["cache", "tmp/data"]``.

        Paths are relative to the source directory; ones that do not exist are
        ignored by duplicity.
        """
        excluded: List[str] = []
        for subdirectory in subdirectories:
            if not isinstance(subdirectory, str) or not subdirectory.strip():
                raise InvalidArgumentError(f"Excluded subdirectory must be a non-empty string: {subdirectory!r}")
            if PurePosixPath(subdirectory).is_absolute():
                raise InvalidArgumentError(f"Excluded subdirectory must be relative: {subdirectory}")
            excluded.append(subdirectory.strip("/"))
        self._excluded = excluded

    def set_passphrase(self, passphrase: str) -> None:
        if not isinstance(passphrase, str) or not passphrase:
            raise InvalidArgumentError("Passphrase should be a non-empty string")
        self._passphrase = passphrase
        if NO_ENCRYPTION in self._options:
            self._options.set_enabled(NO_ENCRYPTION, False)

    def set_option(self, name: str, enabled: bool) -> None:
        if name == NO_ENCRYPTION and enabled and self._passphrase is not None:
            raise InvalidArgumentError(f"{NO_ENCRYPTION} cannot be enabled while a passphrase is set")
        self._options.set_enabled(name, enabled)

    def build_verify(self, compare_data: bool = True) -> Invocation:
        arguments = ["verify"]
        if compare_data:
            arguments.append("--compare-data")
        arguments += [self.target, self._source]
        return self._invocation(arguments)

    def build_execute(self, full: bool = False) -> Invocation:
        arguments = ["full"] if full else []
        arguments += [self._source, self.target]
        return self._invocation(arguments)

    def build_collection_status(self) -> Invocation:
        return self._invocation(["collection-status", self.target])

    def build_restore(self, request: RestoreRequest) -> Invocation:
        self._check_restore_directory(request.destination_directory)
        return self._invocation(
            [
                "restore",
                self.target,
                str(request.destination_directory),
                f"--time={format_timestamp(request.target_timestamp)}",
            ]
        )

    def _check_restore_directory(self, directory: PathLike) -> None:
        if not self._probe.exists(directory):
            raise DirectoryNotFoundError(f"Directory path is invalid: {directory}")
        if not self._probe.is_readable(directory):
            raise DirectoryNotReadableError(f"Directory path is not readable: {directory}")
        is_empty = self._probe.is_empty(directory)
        if is_empty is None:
            raise DirectoryNotReadableError(f"Directory path is not readable: {directory}")
        if not is_empty:
            raise DirectoryNotEmptyError(f"Directory path should be empty: {directory}")

    def _invocation(self, operation: List[str]) -> Invocation:
        if self._passphrase is not None and self._options.is_enabled(NO_ENCRYPTION):
            raise InvalidArgumentError(f"{NO_ENCRYPTION} is enabled while a passphrase is set")
        arguments = self._options.resolve(self._gate) + self._exclude_arguments() + operation
        return Invocation(arguments=tuple(arguments), environment=self._environment())

    def _exclude_arguments(self) -> List[str]:
        arguments: List[str] = []
        for subdirectory in self._excluded:
            arguments += [EXCLUDE_FLAG, f"{EXCLUDE_GLOB_PREFIX}{subdirectory}"]
        return arguments

    def _environment(self) -> Dict[str, str]:
        if self._passphrase is None:
            return {}
        return {PASSPHRASE_ENV: self._passphrase}
