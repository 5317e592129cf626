"""Utility functions for file I/O and value coercion."""

import json
import logging
import os
from pathlib import Path
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

T = TypeVar('T', bound=BaseModel)
logger = logging.getLogger('lineuphub.utils')


def load_json(
    path: Path | str,
    schema: type[T] | None = None,
) -> Any | T:
    """
    Load JSON file with optional schema validation.

    Args:
        path: Path to JSON file (str or Path object)
        schema: Optional Pydantic model to validate against

    Returns:
        Parsed JSON (validated if schema provided)

    Raises:
        FileNotFoundError: If file doesn't exist
        json.JSONDecodeError: If JSON is malformed
        ValueError: If schema validation fails

    Example:
        from lineuphub.schemas import AppConfig
        config = load_json('data/platform_config.json', schema=AppConfig)
    """
    path = Path(path).expanduser()

    logger.debug(f'Loading JSON from: {path}')

    if not path.exists():
        logger.debug(f'File not found: {path}')
        raise FileNotFoundError(f'File not found: {path}')

    try:
        with open(path, encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        logger.error(f'Invalid JSON in {path}: {e.msg} at position {e.pos}')
        raise json.JSONDecodeError(f'Invalid JSON in {path}: {e.msg}', e.doc, e.pos) from e

    if schema:
        try:
            validated = schema.model_validate(data)
            logger.debug(f'Schema validation passed for: {path}')
            return validated
        except ValidationError as e:
            logger.error(f'Schema validation failed for {path}: {e}')
            raise ValueError(f'Schema validation failed for {path}:\n{e}') from e

    return data


def save_json(
    path: Path | str,
    data: Any,
    indent: int = 2,
    create_dirs: bool = True,
    mode: int | None = None,
) -> None:
    """
    Save data as JSON file.

    The file is written to a temporary sibling first and then moved into
    place, so a crash never leaves a half-written record behind.

    Args:
        path: Path to write to (str or Path object)
        data: Data to serialize (must be JSON-serializable or Pydantic model)
        indent: Indentation level (default: 2 spaces)
        create_dirs: Create parent directories if they don't exist (default: True)
        mode: Permission bits for the new file, applied when it is created
            (default: process umask)

    Raises:
        TypeError: If data is not JSON-serializable
        OSError: If file cannot be written
    """
    path = Path(path).expanduser()

    logger.debug(f'Saving JSON to: {path}')

    if create_dirs:
        path.parent.mkdir(parents=True, exist_ok=True)

    json_data = data.model_dump(mode='json') if isinstance(data, BaseModel) else data

    tmp = path.with_suffix(path.suffix + '.tmp')
    opener = None
    if mode is not None:
        # A stale temp file would keep its old permissions
        tmp.unlink(missing_ok=True)

        def opener(file, flags):
            return os.open(file, flags, mode)

    try:
        with open(tmp, 'w', encoding='utf-8', opener=opener) as f:
            json.dump(json_data, f, indent=indent, ensure_ascii=False)
    except TypeError as e:
        logger.error(f'Data is not JSON-serializable: {e}')
        tmp.unlink(missing_ok=True)
        raise TypeError(f'Data is not JSON-serializable: {e}') from e
    tmp.replace(path)


def load_json_safe(
    path: Path | str,
    default: Any = None,
    schema: type[T] | None = None,
) -> Any | T:
    """
    Load JSON file with safe fallback to default value.

    Like load_json, but returns default value instead of raising
    exceptions for missing or invalid files.

    Example:
        # Returns None if no session has been saved yet
        record = load_json_safe(session_path, schema=SessionRecord)
    """
    try:
        return load_json(path, schema=schema)
    except (FileNotFoundError, ValueError) as e:
        logger.debug(f'Falling back to default for {path}: {e}')
        return default


def to_float(value: Any) -> float | None:
    """Coerce an upstream numeric field; blanks and junk become None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        s = value.strip()
        if not s:
            return None
        try:
            return float(s)
        except ValueError:
            return None
    return None


def to_int(value: Any, default: int = 0) -> int:
    """Coerce an upstream count; anything unusable becomes ``default``."""
    number = to_float(value)
    if number is None:
        return default
    return int(number)


def to_points(value: Any) -> float | None:
    """Fantasy points rounded to two decimals, floored at zero."""
    points = to_float(value)
    if points is None:
        return None
    return round(max(points, 0.0), 2)
