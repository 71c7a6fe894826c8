"""Registry of optional duplicity flags gated by the installed version."""

from __future__ import annotations

import dataclasses
import logging
import warnings
from typing import Dict, Iterable, Iterator, List, Optional, Protocol

from .errors import InvalidArgumentError, UnsupportedOptionWarning
from .version import ToolVersion, VersionLike, as_version

LOG = logging.getLogger(__name__)

NO_ENCRYPTION = "--no-encryption"
DRY_RUN = "--dry-run"


class SupportsVersionCheck(Protocol):
    def supports(self, min_version: VersionLike) -> bool:
        ...


@dataclasses.dataclass(frozen=True)
class Option:
    name: str
    min_version: ToolVersion
    enabled: bool = False

    @classmethod
    def since(cls, name: str, min_version: VersionLike, enabled: bool = False) -> "Option":
        return cls(name=name, min_version=as_version(min_version), enabled=enabled)


def default_options() -> List[Option]:
    return [
        Option.since(NO_ENCRYPTION, "0.1", enabled=True),
        Option.since(DRY_RUN, "0.1", enabled=False),
    ]


class OptionSet:
    """Options kept in declared order so resolved flags are reproducible."""

    def __init__(self, options: Optional[Iterable[Option]] = None) -> None:
        self._options: Dict[str, Option] = {}
        for option in default_options() if options is None else options:
            self.add(option)

    def add(self, option: Option) -> None:
        # replacing a name keeps its existing slot in the dict
        self._options[option.name] = option

    def set_enabled(self, name: str, enabled: bool) -> None:
        option = self._options.get(name)
        if option is None:
            known = ", ".join(self._options) or "none"
            raise InvalidArgumentError(f"Unknown option '{name}' (known: {known})")
        self._options[name] = dataclasses.replace(option, enabled=bool(enabled))

    def is_enabled(self, name: str) -> bool:
        option = self._options.get(name)
        return bool(option and option.enabled)

    def __iter__(self) -> Iterator[Option]:
        return iter(list(self._options.values()))

    def __contains__(self, name: object) -> bool:
        return name in self._options

    def resolve(self, gate: SupportsVersionCheck) -> List[str]:
        flags: List[str] = []
        for option in self._options.values():
            if not option.enabled:
                continue
            if not gate.supports(option.min_version):
                message = (
                    f"Option {option.name} requires duplicity >= {option.min_version}, "
                    "not available locally"
                )
                LOG.warning(message)
                warnings.warn(message, UnsupportedOptionWarning, stacklevel=2)
                continue
            flags.append(option.name)
        return flags
