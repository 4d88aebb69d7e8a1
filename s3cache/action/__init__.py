"""Pipeline boundary - inputs, outputs and the restore/save phases.

Exports:
    - ActionInputs: Parsed pipeline inputs
    - restore_run, restore_only_run: Restore phase entry points
    - save_run, save_only_run: Save phase entry points
"""

from s3cache.action.inputs import (
    ActionInputs,
    get_input,
    get_input_as_array,
    get_input_as_bool,
    is_valid_event,
    set_output,
)
from s3cache.action.restore import restore_impl, restore_only_run, restore_run
from s3cache.action.save import save_impl, save_only_run, save_run


__all__ = [
    "ActionInputs",
    "get_input",
    "get_input_as_array",
    "get_input_as_bool",
    "is_valid_event",
    "restore_impl",
    "restore_only_run",
    "restore_run",
    "save_impl",
    "save_only_run",
    "save_run",
    "set_output",
]
