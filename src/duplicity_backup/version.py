"""Duplicity version discovery and comparison."""

from __future__ import annotations

import functools
import logging
import re
import threading
from typing import Optional, Tuple, Union

from .errors import ToolNotFoundError
from .executor import ProcessExecutor

LOG = logging.getLogger(__name__)

PRODUCT_TOKEN = "duplicity"
VERSION_FLAG = "-V"

_NUMERIC_RUN = re.compile(r"(\d+(?:\.\d+)*)")


@functools.total_ordering
class ToolVersion:
    """Dotted version compared component by component; missing components count as zero."""

    __slots__ = ("_text", "_components")

    def __init__(self, text: str) -> None:
        match = _NUMERIC_RUN.match(text.strip().lstrip("vV"))
        if not match:
            raise ValueError(f"Not a version string: {text!r}")
        self._text = match.group(1)
        self._components: Tuple[int, ...] = tuple(int(part) for part in self._text.split("."))

    @property
    def components(self) -> Tuple[int, ...]:
        return self._components

    def _normalized(self) -> Tuple[int, ...]:
        parts = list(self._components)
        while len(parts) > 1 and parts[-1] == 0:
            parts.pop()
        return tuple(parts)

    def _padded(self, length: int) -> Tuple[int, ...]:
        return self._components + (0,) * (length - len(self._components))

    def _compare_key(self, other: "ToolVersion") -> Tuple[Tuple[int, ...], Tuple[int, ...]]:
        length = max(len(self._components), len(other._components))
        return self._padded(length), other._padded(length)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ToolVersion):
            return NotImplemented
        mine, theirs = self._compare_key(other)
        return mine == theirs

    def __lt__(self, other: "ToolVersion") -> bool:
        if not isinstance(other, ToolVersion):
            return NotImplemented
        mine, theirs = self._compare_key(other)
        return mine < theirs

    def __hash__(self) -> int:
        return hash(self._normalized())

    def __str__(self) -> str:
        return self._text

    def __repr__(self) -> str:
        return f"ToolVersion({self._text!r})"


VersionLike = Union[ToolVersion, str]


def as_version(value: VersionLike) -> ToolVersion:
    if isinstance(value, ToolVersion):
        return value
    return ToolVersion(value)


class VersionGate:
    """Probes the installed duplicity once and answers feature-support queries.

    The probed version is cached on the instance. Concurrent first calls are
    serialized so the probe runs at most once and readers never observe a
    half-initialized value.
    """

    def __init__(self, executor: ProcessExecutor) -> None:
        self._executor = executor
        self._version: Optional[ToolVersion] = None
        self._lock = threading.Lock()

    def is_installed(self) -> bool:
        return self._executor.run([VERSION_FLAG], {}) == 0

    def get_version(self) -> ToolVersion:
        version = self._version
        if version is not None:
            return version
        with self._lock:
            if self._version is None:
                self._version = self._probe()
            return self._version

    def supports(self, min_version: VersionLike) -> bool:
        return self.get_version() >= as_version(min_version)

    def _probe(self) -> ToolVersion:
        exit_code = self._executor.run([VERSION_FLAG], {})
        if exit_code != 0:
            raise ToolNotFoundError(f"duplicity not installed (version probe exited with {exit_code})")
        output = "".join(self._executor.get_output())
        text = output.replace(PRODUCT_TOKEN, "").strip()
        try:
            version = ToolVersion(text)
        except ValueError as exc:
            raise ToolNotFoundError(f"Unable to determine duplicity version from {output!r}") from exc
        LOG.debug("Detected duplicity version %s", version)
        return version
