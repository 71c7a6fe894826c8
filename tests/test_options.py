from __future__ import annotations

import warnings

import pytest

from conftest import RecordingExecutor
from duplicity_backup.errors import InvalidArgumentError, UnsupportedOptionWarning
from duplicity_backup.options import DRY_RUN, NO_ENCRYPTION, Option, OptionSet
from duplicity_backup.version import VersionGate


def _gate(version: str = "0.8") -> VersionGate:
    return VersionGate(RecordingExecutor(version_output=f"duplicity {version}"))


def test_defaults_enable_no_encryption_only() -> None:
    options = OptionSet()

    assert [option.name for option in options] == [NO_ENCRYPTION, DRY_RUN]
    assert options.resolve(_gate()) == [NO_ENCRYPTION]


def test_enabled_options_resolve_in_declared_order() -> None:
    options = OptionSet()
    options.add(Option.since("--allow-source-mismatch", "0.6", enabled=True))
    options.set_enabled(DRY_RUN, True)

    first = options.resolve(_gate())
    second = options.resolve(_gate())

    assert first == [NO_ENCRYPTION, DRY_RUN, "--allow-source-mismatch"]
    assert first == second


def test_readding_an_option_keeps_its_position() -> None:
    options = OptionSet()
    options.add(Option.since(NO_ENCRYPTION, "0.1", enabled=False))

    assert [option.name for option in options] == [NO_ENCRYPTION, DRY_RUN]
    assert not options.is_enabled(NO_ENCRYPTION)


def test_unsupported_option_is_dropped_with_warning() -> None:
    options = OptionSet()
    options.add(Option.since("--use-agent", "0.9", enabled=True))

    with pytest.warns(UnsupportedOptionWarning, match="--use-agent requires duplicity >= 0.9"):
        flags = options.resolve(_gate("0.8"))

    assert flags == [NO_ENCRYPTION]


def test_disabled_unsupported_option_is_silent() -> None:
    options = OptionSet()
    options.add(Option.since("--use-agent", "0.9", enabled=False))

    with warnings.catch_warnings():
        warnings.simplefilter("error")
        assert options.resolve(_gate("0.8")) == [NO_ENCRYPTION]


def test_set_enabled_rejects_unknown_option() -> None:
    with pytest.raises(InvalidArgumentError, match="--bogus"):
        OptionSet().set_enabled("--bogus", True)


def test_empty_option_set() -> None:
    assert OptionSet([]).resolve(_gate()) == []
