from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

import pytest

from duplicity_backup.tool import Duplicity

SOURCE = "/data/source"
DESTINATION = "/backups/home"

OPERATIONS = ("verify", "collection-status", "restore")


class RecordingExecutor:
    """Fake duplicity: answers the version probe and records every other run."""

    def __init__(self, version_output: str = "duplicity 0.8.21", installed: bool = True) -> None:
        self.version_output = version_output
        self.installed = installed
        self.probe_calls = 0
        self.calls: List[Tuple[List[str], Dict[str, str]]] = []
        self.responses: Dict[str, Tuple[int, List[str]]] = {}
        self._output: List[str] = []

    def respond(self, operation: str, exit_code: int, lines: Sequence[str] = ()) -> None:
        self.responses[operation] = (exit_code, list(lines))

    def run(self, arguments: Sequence[str], environment: Mapping[str, str]) -> int:
        arguments = list(arguments)
        if arguments == ["-V"]:
            self.probe_calls += 1
            if not self.installed:
                self._output = []
                return 127
            self._output = [self.version_output]
            return 0

        self.calls.append((arguments, dict(environment)))
        exit_code, lines = self.responses.get(_operation(arguments), (0, []))
        self._output = list(lines)
        return exit_code

    def get_output(self) -> List[str]:
        return list(self._output)


def _operation(arguments: Sequence[str]) -> str:
    for token in OPERATIONS:
        if token in arguments:
            return token
    return "backup"


class MemoryProbe:
    """Filesystem probe over a dict of directory path -> "empty" | "full" | "unreadable"."""

    def __init__(self, directories: Optional[Dict[str, str]] = None) -> None:
        self.directories = dict(directories or {})

    def exists(self, path: Union[str, Path]) -> bool:
        return str(path) in self.directories

    def is_readable(self, path: Union[str, Path]) -> bool:
        return self.directories.get(str(path)) in ("empty", "full")

    def is_empty(self, path: Union[str, Path]) -> Optional[bool]:
        state = self.directories.get(str(path))
        if state == "empty":
            return True
        if state == "full":
            return False
        return None


@pytest.fixture
def executor() -> RecordingExecutor:
    return RecordingExecutor()


@pytest.fixture
def probe() -> MemoryProbe:
    return MemoryProbe({SOURCE: "full"})


@pytest.fixture
def tool(executor: RecordingExecutor, probe: MemoryProbe) -> Duplicity:
    return Duplicity(SOURCE, DESTINATION, executor=executor, probe=probe)
