"""Restore phase entry points.

restore_run persists the primary and matched keys for the save phase;
restore_only_run uses the no-op state provider.
"""

import os
from collections.abc import Mapping

from s3cache.action.inputs import ActionInputs, is_valid_event, set_output
from s3cache.cache.orchestrator import CacheRestorer
from s3cache.cache.state import NullStateProvider, StateProvider, StateProviderProtocol
from s3cache.clients.object_store import get_object_store
from s3cache.clients.protocols import ObjectStoreProtocol
from s3cache.core.config import Settings, get_settings
from s3cache.core.constants import Events, Outputs, State
from s3cache.core.exceptions import CacheError, CacheValidationError
from s3cache.core.logging import get_logger


logger = get_logger(__name__)


async def restore_impl(
    state_provider: StateProviderProtocol,
    settings: Settings | None = None,
    store: ObjectStoreProtocol | None = None,
    environ: Mapping[str, str] | None = None,
) -> str | None:
    """Restore cache paths and publish the outcome.

    Args:
        state_provider: Cross-phase state capability
        settings: Settings (process settings when None)
        store: Object store (shared S3 store when None)
        environ: Environment to read inputs from (os.environ when None)

    Returns:
        The matched key, or None on a miss or a skipped restore

    Raises:
        ConfigurationError: If credentials, region or bucket are missing
        CacheMissError: On a miss with fail-on-cache-miss set
    """
    settings = settings or get_settings()

    env = os.environ if environ is None else environ
    if not is_valid_event(env):
        event = env.get(Events.KEY.value, "")
        logger.warning(
            "Event Validation Error: the event type is not supported because "
            "it's not tied to a branch or tag ref.",
            github_event=event,
        )
        return None

    inputs = ActionInputs.from_env(environ)
    primary_key = state_provider.get_state(State.CACHE_PRIMARY_KEY) or inputs.key
    if not primary_key:
        raise CacheValidationError("Key is not specified.", field="key")
    state_provider.set_state(State.CACHE_PRIMARY_KEY, primary_key)

    settings.require_transfer_config()
    restorer = CacheRestorer.from_settings(settings, store or get_object_store())

    set_output(Outputs.CACHE_PRIMARY_KEY, primary_key, environ)
    try:
        outcome = await restorer.restore(
            primary_key,
            inputs.restore_keys,
            inputs.paths,
            lookup_only=inputs.lookup_only,
            fail_on_miss=inputs.fail_on_cache_miss,
        )
    except CacheError:
        set_output(Outputs.CACHE_HIT, "false", environ)
        raise

    set_output(Outputs.CACHE_HIT, "true" if outcome.exact else "false", environ)
    set_output(Outputs.CACHE_MATCHED_KEY, outcome.resolved_key or "", environ)
    if outcome.resolved_key is None:
        return None

    state_provider.set_state(State.CACHE_MATCHED_KEY, outcome.resolved_key)
    return outcome.resolved_key


async def run(
    state_provider: StateProviderProtocol,
    settings: Settings | None = None,
    store: ObjectStoreProtocol | None = None,
    environ: Mapping[str, str] | None = None,
) -> int:
    """Run the restore phase and return the process exit code."""
    try:
        await restore_impl(state_provider, settings, store, environ)
    except CacheValidationError as exc:
        logger.warning("Skipping cache restore", error=str(exc))
    except CacheError as exc:
        logger.error("Cache restore failed", error=str(exc))
        return 1
    return 0


async def restore_only_run(
    settings: Settings | None = None,
    store: ObjectStoreProtocol | None = None,
    environ: Mapping[str, str] | None = None,
) -> int:
    return await run(NullStateProvider(), settings, store, environ)


async def restore_run(
    settings: Settings | None = None,
    store: ObjectStoreProtocol | None = None,
    environ: Mapping[str, str] | None = None,
) -> int:
    return await run(StateProvider(environ), settings, store, environ)
