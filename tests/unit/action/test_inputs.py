"""Unit tests for s3cache.action.inputs."""

from pathlib import Path

import pytest

from s3cache.action.inputs import (
    ActionInputs,
    get_input,
    get_input_as_array,
    get_input_as_bool,
    input_env_name,
    is_valid_event,
    set_output,
)
from s3cache.core.constants import Inputs, Outputs
from s3cache.core.exceptions import CacheValidationError
from tests.fakes.runner_files import parse_file_commands


class TestGetInput:
    """Tests for reading INPUT_* variables."""

    def test_env_name(self) -> None:
        assert input_env_name(Inputs.RESTORE_KEYS) == "INPUT_RESTORE-KEYS"
        assert input_env_name("my input") == "INPUT_MY_INPUT"

    def test_value_is_stripped(self) -> None:
        assert get_input(Inputs.KEY, environ={"INPUT_KEY": "  v1 \n"}) == "v1"

    def test_missing_optional_is_empty(self) -> None:
        assert get_input(Inputs.KEY, environ={}) == ""

    def test_missing_required_raises(self) -> None:
        with pytest.raises(CacheValidationError) as exc_info:
            get_input(Inputs.PATH, required=True, environ={})

        assert exc_info.value.field == "path"

    def test_array_drops_blank_lines(self) -> None:
        environ = {"INPUT_PATH": "dist\n\n  out/app.bin  \n"}

        assert get_input_as_array(Inputs.PATH, environ=environ) == ["dist", "out/app.bin"]

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [("true", True), ("TRUE", True), ("false", False), ("", False), ("yes", False)],
    )
    def test_bool(self, raw: str, expected: bool) -> None:
        environ = {"INPUT_LOOKUP-ONLY": raw}

        assert get_input_as_bool(Inputs.LOOKUP_ONLY, environ=environ) is expected


class TestActionInputs:
    """Tests for ActionInputs.from_env."""

    def test_reads_all_inputs(self) -> None:
        environ = {
            "INPUT_KEY": "v2",
            "INPUT_PATH": "dist\nout",
            "INPUT_RESTORE-KEYS": "v2\nv1\nv0",
            "INPUT_FAIL-ON-CACHE-MISS": "true",
            "INPUT_LOOKUP-ONLY": "false",
        }

        inputs = ActionInputs.from_env(environ)

        assert inputs.key == "v2"
        assert inputs.paths == ["dist", "out"]
        assert inputs.restore_keys == ["v1", "v0"]
        assert inputs.fail_on_cache_miss is True
        assert inputs.lookup_only is False

    def test_first_restore_key_skipped(self) -> None:
        """Test the first restore-keys entry is dropped even when it differs."""
        environ = {"INPUT_PATH": "dist", "INPUT_RESTORE-KEYS": "only-one"}

        assert ActionInputs.from_env(environ).restore_keys == []

    def test_path_required(self) -> None:
        with pytest.raises(CacheValidationError):
            ActionInputs.from_env({"INPUT_KEY": "v1"})


class TestEventAndOutputs:
    """Tests for trigger validation and outputs."""

    def test_event_with_ref_is_valid(self) -> None:
        assert is_valid_event({"GITHUB_REF": "refs/tags/v1.0"}) is True

    def test_event_without_ref_is_invalid(self) -> None:
        assert is_valid_event({"GITHUB_EVENT_NAME": "schedule"}) is False

    def test_set_output_writes_file(self, runner_env: dict[str, str]) -> None:
        set_output(Outputs.CACHE_HIT, "true", runner_env)

        outputs = parse_file_commands(Path(runner_env["GITHUB_OUTPUT"]))
        assert outputs == {"cache-hit": "true"}

    def test_set_output_without_runner_file(self, tmp_path: Path) -> None:
        """Test outputs are only logged when no runner file exists."""
        set_output(Outputs.CACHE_HIT, "true", {})

        assert list(tmp_path.iterdir()) == []
