"""CI runner file commands.

The runner exposes outputs and saved state through files named by
environment variables ($GITHUB_OUTPUT, $GITHUB_STATE). Each entry is
written in the multi-line form:

    name<<ghadelimiter_<uuid>
    value
    ghadelimiter_<uuid>
"""

import os
import uuid
from collections.abc import Mapping

from s3cache.core.exceptions import CacheValidationError


def prepare_key_value_message(key: str, value: str) -> str:
    """Format one key/value entry for a runner file command.

    Raises:
        CacheValidationError: If key or value contains the generated delimiter
    """
    delimiter = f"ghadelimiter_{uuid.uuid4()}"
    if delimiter in key:
        raise CacheValidationError(
            f"Unexpected input: name should not contain the delimiter {delimiter}",
            field="name",
            value=key,
        )
    if delimiter in value:
        raise CacheValidationError(
            f"Unexpected input: value should not contain the delimiter {delimiter}",
            field="value",
        )
    return f"{key}<<{delimiter}{os.linesep}{value}{os.linesep}{delimiter}"


def issue_file_command(
    env_name: str,
    key: str,
    value: str,
    environ: Mapping[str, str] | None = None,
) -> bool:
    """Append a key/value entry to the file named by ``env_name``.

    Returns:
        False when the runner does not provide the file (nothing written)
    """
    env = os.environ if environ is None else environ
    file_path = env.get(env_name)
    if not file_path:
        return False
    with open(file_path, "a", encoding="utf-8") as handle:
        handle.write(prepare_key_value_message(key, value) + os.linesep)
    return True
