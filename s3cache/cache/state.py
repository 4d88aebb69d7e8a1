"""Cross-phase state handoff between restore and save.

Restore records the primary key and the matched key; save reads them back
to skip re-uploading an exact hit. Two providers:
- StateProvider: persisted through the runner's $GITHUB_STATE file and
  read back from STATE_<name> environment variables in the later phase
- NullStateProvider: no-op, for restore-only and save-only invocations
"""

import os
from collections.abc import Mapping
from typing import Protocol, runtime_checkable

from s3cache.core.constants import GITHUB_STATE_ENV, State
from s3cache.core.logging import get_logger
from s3cache.core.runner import issue_file_command


logger = get_logger(__name__)

STATE_ENV_PREFIX = "STATE_"


@runtime_checkable
class StateProviderProtocol(Protocol):
    """Small key/value capability injected into the pipeline phases."""

    def get_state(self, name: str) -> str:
        """Return the stored value, or "" when unset."""
        ...

    def set_state(self, name: str, value: str) -> None:
        """Store a value for the later phase."""
        ...

    def get_cache_state(self) -> str | None:
        """Return the key matched during restore, if any."""
        ...


class StateProvider:
    """State persisted across phases by the runner.

    Values set in this process are also kept in memory so a restore and a
    save in one process see each other's state.

    Example:
        >>> provider = StateProvider()
        >>> provider.set_state(State.CACHE_PRIMARY_KEY, "v2")
        >>> provider.get_state(State.CACHE_PRIMARY_KEY)
        'v2'
    """

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        self._environ = os.environ if environ is None else environ
        self._local: dict[str, str] = {}

    def get_state(self, name: str) -> str:
        key = _state_name(name)
        if key in self._local:
            return self._local[key]
        return self._environ.get(f"{STATE_ENV_PREFIX}{key}", "")

    def set_state(self, name: str, value: str) -> None:
        key = _state_name(name)
        self._local[key] = value
        if not issue_file_command(GITHUB_STATE_ENV, key, value, self._environ):
            logger.debug("No runner state file, state kept in memory", name=key)

    def get_cache_state(self) -> str | None:
        cache_key = self.get_state(State.CACHE_MATCHED_KEY)
        if cache_key:
            logger.debug("Cache state/key", key=cache_key)
            return cache_key
        return None


class NullStateProvider:
    """State provider that stores nothing."""

    def get_state(self, name: str) -> str:
        return ""

    def set_state(self, name: str, value: str) -> None:
        pass

    def get_cache_state(self) -> str | None:
        return None


def _state_name(name: str) -> str:
    return name.value if isinstance(name, State) else name
