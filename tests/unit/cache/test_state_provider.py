"""Unit tests for s3cache.cache.state.

Tests the runner-backed state provider and the null provider.
"""

from pathlib import Path

from s3cache.cache.state import (
    NullStateProvider,
    StateProvider,
    StateProviderProtocol,
)
from s3cache.core.constants import State


class TestStateProvider:
    """Tests for the persistent StateProvider."""

    def test_conforms_to_protocol(self) -> None:
        assert isinstance(StateProvider({}), StateProviderProtocol)
        assert isinstance(NullStateProvider(), StateProviderProtocol)

    def test_set_then_get_in_process(self) -> None:
        provider = StateProvider({})

        provider.set_state(State.CACHE_PRIMARY_KEY, "v2")

        assert provider.get_state(State.CACHE_PRIMARY_KEY) == "v2"
        assert provider.get_state("CACHE_KEY") == "v2"

    def test_reads_state_from_earlier_phase(self) -> None:
        provider = StateProvider({"STATE_CACHE_RESULT": "v1"})

        assert provider.get_state(State.CACHE_MATCHED_KEY) == "v1"
        assert provider.get_cache_state() == "v1"

    def test_unset_state_is_empty(self) -> None:
        provider = StateProvider({})

        assert provider.get_state(State.CACHE_PRIMARY_KEY) == ""
        assert provider.get_cache_state() is None

    def test_set_state_writes_runner_file(self, tmp_path: Path) -> None:
        state_file = tmp_path / "state"
        state_file.touch()
        provider = StateProvider({"GITHUB_STATE": str(state_file)})

        provider.set_state(State.CACHE_MATCHED_KEY, "v1")

        lines = state_file.read_text(encoding="utf-8").splitlines()
        assert lines[0].startswith("CACHE_RESULT<<ghadelimiter_")
        assert lines[1] == "v1"
        assert lines[2] == lines[0].split("<<", 1)[1]


class TestNullStateProvider:
    """Tests for NullStateProvider."""

    def test_stores_nothing(self) -> None:
        provider = NullStateProvider()

        provider.set_state(State.CACHE_PRIMARY_KEY, "v2")

        assert provider.get_state(State.CACHE_PRIMARY_KEY) == ""
        assert provider.get_cache_state() is None
