import json
from functools import lru_cache
from importlib.resources import files
from typing import Any, List

from jsonschema import Draft202012Validator
from taskmail.recovery import CorruptionError
from taskmail.logs import get_logger

log = get_logger("data.validate")

TASKS_SCHEMA_NAME = "tasks.schema.json"

@lru_cache(maxsize=None)
def load_schema(schema_name: str = TASKS_SCHEMA_NAME) -> dict:
    """
    Loads a JSON schema bundled with the package.

    Args:
        schema_name: The name of the schema file (e.g., 'tasks.schema.json').

    Returns:
        A dictionary representing the loaded JSON schema.

    Raises:
        FileNotFoundError: If the schema file does not exist.
        json.JSONDecodeError: If the schema file is not valid JSON.
    """
    schema_file = files("taskmail") / "schemas" / schema_name
    log.debug(f"Loading schema: {schema_name}")
    schema = json.loads(schema_file.read_text(encoding="utf-8"))
    Draft202012Validator.check_schema(schema)
    return schema

def validate_blob(data: Any) -> List[str]:
    """
    Validates decoded blob data against the task list schema.

    Returns:
        A list of error messages, empty when the data is valid.
    """
    validator = Draft202012Validator(load_schema())
    errors = sorted(validator.iter_errors(data), key=lambda e: list(e.absolute_path))
    messages = []
    for error in errors:
        location = "/".join(str(p) for p in error.absolute_path) or "<root>"
        messages.append(f"{location}: {error.message}")
    return messages

def check_blob(raw: bytes) -> Any:
    """Decode a raw blob and validate it, returning the decoded data.

    Raises:
        CorruptionError: if the bytes are not JSON or fail the schema.
    """
    try:
        data = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise CorruptionError(f"Stored tasks are not valid JSON: {e}") from e

    errors = validate_blob(data)
    if errors:
        log.debug(f"Blob failed validation with {len(errors)} error(s)")
        raise CorruptionError(f"Stored tasks failed validation: {errors[0]}")
    return data
