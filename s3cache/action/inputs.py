"""Pipeline inputs, outputs and trigger validation.

Inputs arrive as INPUT_<NAME> environment variables (name upper-cased,
spaces replaced by underscores). Outputs are written through the runner's
$GITHUB_OUTPUT file command.
"""

import os
import re
from collections.abc import Mapping
from dataclasses import dataclass, field

from s3cache.core.constants import GITHUB_OUTPUT_ENV, Events, Inputs, Outputs
from s3cache.core.exceptions import CacheValidationError
from s3cache.core.logging import get_logger
from s3cache.core.runner import issue_file_command


logger = get_logger(__name__)

_NEGATION_SPACING = re.compile(r"^!\s+")


def _name(name: str | Inputs | Outputs) -> str:
    return name.value if isinstance(name, (Inputs, Outputs)) else name


def input_env_name(name: str | Inputs) -> str:
    """Environment variable carrying an input.

    Example:
        >>> input_env_name("restore-keys")
        'INPUT_RESTORE-KEYS'
    """
    return f"INPUT_{_name(name).replace(' ', '_').upper()}"


def get_input(
    name: str | Inputs,
    required: bool = False,
    environ: Mapping[str, str] | None = None,
) -> str:
    """Read one input, stripped.

    Raises:
        CacheValidationError: If required and not supplied
    """
    env = os.environ if environ is None else environ
    value = env.get(input_env_name(name), "")
    if required and not value:
        raise CacheValidationError(
            f"Input required and not supplied: {_name(name)}", field=_name(name)
        )
    return value.strip()


def get_input_as_array(
    name: str | Inputs,
    required: bool = False,
    environ: Mapping[str, str] | None = None,
) -> list[str]:
    """Read a newline-separated list input, dropping blank lines."""
    raw = get_input(name, required=required, environ=environ)
    values = [_NEGATION_SPACING.sub("!", line).strip() for line in raw.split("\n")]
    return [value for value in values if value]


def get_input_as_bool(
    name: str | Inputs,
    required: bool = False,
    environ: Mapping[str, str] | None = None,
) -> bool:
    """Read a boolean input; only "true" (any case) is true."""
    return get_input(name, required=required, environ=environ).lower() == "true"


def is_valid_event(environ: Mapping[str, str] | None = None) -> bool:
    """Cache operations are allowed only for events tied to a ref."""
    env = os.environ if environ is None else environ
    return bool(env.get(Events.REF_KEY.value))


def set_output(
    name: str | Outputs,
    value: str,
    environ: Mapping[str, str] | None = None,
) -> None:
    """Publish an output for later workflow steps."""
    if not issue_file_command(GITHUB_OUTPUT_ENV, _name(name), value, environ):
        logger.info("Output", name=_name(name), value=value)


@dataclass(frozen=True)
class ActionInputs:
    """Inputs shared by the restore and save phases.

    Attributes:
        key: Primary cache key (may be empty; phases validate it)
        paths: Local cache paths, at least one
        restore_keys: Fallback keys; the first listed entry is skipped
            because it conventionally repeats the primary key
        fail_on_cache_miss: Fail the job when nothing restores
        lookup_only: Probe existence without downloading
    """

    key: str
    paths: list[str]
    restore_keys: list[str] = field(default_factory=list)
    fail_on_cache_miss: bool = False
    lookup_only: bool = False

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ActionInputs":
        """Read every input.

        Raises:
            CacheValidationError: If no path is supplied
        """
        return cls(
            key=get_input(Inputs.KEY, environ=environ),
            paths=get_input_as_array(Inputs.PATH, required=True, environ=environ),
            restore_keys=get_input_as_array(Inputs.RESTORE_KEYS, environ=environ)[1:],
            fail_on_cache_miss=get_input_as_bool(Inputs.FAIL_ON_CACHE_MISS, environ=environ),
            lookup_only=get_input_as_bool(Inputs.LOOKUP_ONLY, environ=environ),
        )
