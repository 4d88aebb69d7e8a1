"""Save phase entry points.

save_run reuses the keys recorded by the restore phase and skips the
upload on an exact hit; save_only_run has no restore state to consult.
A failed save never fails the job, except for missing configuration.
"""

import os
from collections.abc import Mapping

from s3cache.action.inputs import get_input, get_input_as_array, is_valid_event
from s3cache.cache.keys import is_exact_key_match
from s3cache.cache.orchestrator import CacheSaver
from s3cache.cache.report import TransferReport
from s3cache.cache.state import NullStateProvider, StateProvider, StateProviderProtocol
from s3cache.clients.object_store import get_object_store
from s3cache.clients.protocols import ObjectStoreProtocol
from s3cache.core.config import Settings, get_settings
from s3cache.core.constants import Events, Inputs, State
from s3cache.core.exceptions import CacheError, CacheValidationError, ConfigurationError
from s3cache.core.logging import get_logger


logger = get_logger(__name__)


async def save_impl(
    state_provider: StateProviderProtocol,
    settings: Settings | None = None,
    store: ObjectStoreProtocol | None = None,
    environ: Mapping[str, str] | None = None,
) -> TransferReport | None:
    """Upload cache paths under the primary key.

    Returns:
        TransferReport, or None when the save was skipped

    Raises:
        ConfigurationError: If credentials, region or bucket are missing
        CacheValidationError: If the key or paths are not supplied
    """
    settings = settings or get_settings()

    env = os.environ if environ is None else environ
    if not is_valid_event(env):
        logger.warning(
            "Event Validation Error: the event type is not supported because "
            "it's not tied to a branch or tag ref.",
            github_event=env.get(Events.KEY.value, ""),
        )
        return None

    # Prefer the key recorded by restore; re-evaluate inputs otherwise
    primary_key = state_provider.get_state(State.CACHE_PRIMARY_KEY) or get_input(
        Inputs.KEY, environ=environ
    )
    if not primary_key:
        raise CacheValidationError("Key is not specified.", field="key")

    restored_key = state_provider.get_cache_state()
    if is_exact_key_match(primary_key, restored_key):
        logger.info(
            "Cache hit occurred on the primary key, not saving cache.",
            key=primary_key,
        )
        return None

    paths = get_input_as_array(Inputs.PATH, required=True, environ=environ)

    settings.require_transfer_config()
    saver = CacheSaver.from_settings(settings, store or get_object_store())
    return await saver.save(primary_key, paths)


async def run(
    state_provider: StateProviderProtocol,
    settings: Settings | None = None,
    store: ObjectStoreProtocol | None = None,
    environ: Mapping[str, str] | None = None,
    warn_on_skip: bool = False,
) -> int:
    """Run the save phase and return the process exit code."""
    try:
        report = await save_impl(state_provider, settings, store, environ)
    except ConfigurationError as exc:
        logger.error("Cache save failed", error=str(exc))
        return 1
    except CacheValidationError as exc:
        logger.warning("Skipping cache save", error=str(exc))
        return 0
    except CacheError as exc:
        logger.warning("Error saving cache", error=str(exc))
        return 0

    if warn_on_skip and (report is None or not report.ok):
        logger.warning("Cache save failed.")
    return 0


async def save_only_run(
    settings: Settings | None = None,
    store: ObjectStoreProtocol | None = None,
    environ: Mapping[str, str] | None = None,
) -> int:
    return await run(NullStateProvider(), settings, store, environ, warn_on_skip=True)


async def save_run(
    settings: Settings | None = None,
    store: ObjectStoreProtocol | None = None,
    environ: Mapping[str, str] | None = None,
) -> int:
    return await run(StateProvider(environ), settings, store, environ)
