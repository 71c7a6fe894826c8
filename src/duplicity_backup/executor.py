"""Process execution and filesystem collaborators used by the orchestration layer."""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path
from typing import List, Mapping, Optional, Protocol, Sequence, Union

LOG = logging.getLogger(__name__)

DEFAULT_BINARY = "duplicity"

# Shell conventions for "command not found", "not executable" and "timed out".
EXIT_NOT_FOUND = 127
EXIT_NOT_EXECUTABLE = 126
EXIT_TIMEOUT = 124

PathLike = Union[str, Path]


class ProcessExecutor(Protocol):
    def run(self, arguments: Sequence[str], environment: Mapping[str, str]) -> int:
        ...

    def get_output(self) -> List[str]:
        ...


class FilesystemProbe(Protocol):
    def exists(self, path: PathLike) -> bool:
        ...

    def is_readable(self, path: PathLike) -> bool:
        ...

    def is_empty(self, path: PathLike) -> Optional[bool]:
        ...


class SubprocessExecutor:
    """Runs the duplicity binary without a shell and keeps the stdout of the last run."""

    def __init__(self, binary: str = DEFAULT_BINARY, timeout: Optional[float] = None) -> None:
        self._binary = binary
        self._timeout = timeout
        self._output: List[str] = []

    @property
    def binary(self) -> str:
        return self._binary

    def run(self, arguments: Sequence[str], environment: Mapping[str, str]) -> int:
        env = os.environ.copy()
        env.update(environment)
        cmd = [self._binary, *arguments]
        try:
            completed = subprocess.run(
                cmd,
                env=env,
                capture_output=True,
                text=True,
                errors="replace",
                timeout=self._timeout,
            )
        except FileNotFoundError:
            LOG.debug("Executable %s not found", self._binary)
            self._output = []
            return EXIT_NOT_FOUND
        except OSError as exc:
            LOG.warning("Unable to execute %s: %s", self._binary, exc)
            self._output = []
            return EXIT_NOT_EXECUTABLE
        except subprocess.TimeoutExpired as exc:
            LOG.warning("%s timed out after %ss", self._binary, exc.timeout)
            self._output = _split_lines(exc.stdout)
            return EXIT_TIMEOUT

        if completed.stderr:
            LOG.debug("%s stderr:\n%s", self._binary, completed.stderr.rstrip())
        self._output = completed.stdout.splitlines()
        return completed.returncode

    def get_output(self) -> List[str]:
        return list(self._output)


def _split_lines(data: Union[str, bytes, None]) -> List[str]:
    if not data:
        return []
    if isinstance(data, bytes):
        data = data.decode("utf-8", "replace")
    return data.splitlines()


class LocalFilesystemProbe:
    """Answers directory questions against the local filesystem."""

    def exists(self, path: PathLike) -> bool:
        return Path(path).is_dir()

    def is_readable(self, path: PathLike) -> bool:
        return os.access(path, os.R_OK | os.X_OK)

    def is_empty(self, path: PathLike) -> Optional[bool]:
        if not self.is_readable(path):
            return None
        try:
            with os.scandir(path) as entries:
                return next(entries, None) is None
        except PermissionError:
            return None
