"""Utility functions for JSON file I/O and league calendar dates."""

import json
import logging
import os
from datetime import date, datetime, timedelta, timezone, tzinfo
from pathlib import Path
from typing import Any, Optional, TypeVar

from pydantic import BaseModel, ValidationError

T = TypeVar('T', bound=BaseModel)
logger = logging.getLogger('hockeypool.utils')


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
    """
    path = Path(path)

    logger.debug(f'Loading JSON from: {path}')

    if not path.exists():
        logger.error(f'File not found: {path}')
        raise FileNotFoundError(f'File not found: {path}')

    try:
        with open(path, encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        logger.error(f'Invalid JSON in {path}: {e.msg} at position {e.pos}')
        raise json.JSONDecodeError(f'Invalid JSON in {path}: {e.msg}', e.doc, e.pos) from e

    if schema:
        try:
            return schema.model_validate(data)
        except ValidationError as e:
            logger.error(f'Schema validation failed for {path}: {e}')
            raise ValueError(f'Schema validation failed for {path}:\n{e}') from e

    return data


def save_json(
    path: Path | str,
    data: Any,
    indent: int = 2,
    create_dirs: bool = True,
    atomic: bool = False,
) -> None:
    """
    Save data as JSON file.

    Args:
        path: Path to write to (str or Path object)
        data: Data to serialize (must be JSON-serializable or Pydantic model)
        indent: Indentation level (default: 2 spaces)
        create_dirs: Create parent directories if they don't exist (default: True)
        atomic: Write to a temporary sibling and rename over the target, so
            readers never observe a half-written file

    Raises:
        TypeError: If data is not JSON-serializable
        OSError: If file cannot be written
    """
    path = Path(path)

    if create_dirs:
        path.parent.mkdir(parents=True, exist_ok=True)

    json_data = data.model_dump() if isinstance(data, BaseModel) else data
    target = path.with_name(f'.{path.name}.tmp') if atomic else path

    try:
        with open(target, 'w', encoding='utf-8') as f:
            json.dump(json_data, f, indent=indent, ensure_ascii=False)
    except TypeError as e:
        logger.error(f'Data is not JSON-serializable: {e}')
        raise TypeError(f'Data is not JSON-serializable: {e}') from e

    if atomic:
        os.replace(target, path)
    logger.debug(f'Saved JSON to: {path}')


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


def local_now(tz: tzinfo, now: Optional[datetime] = None) -> datetime:
    """
    Express ``now`` (default: the current instant) in the league timezone.

    Naive datetimes are taken to be UTC.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(tz)


def local_today(tz: tzinfo, now: Optional[datetime] = None) -> str:
    """Today's date (YYYY-MM-DD) in the league timezone."""
    return local_now(tz, now).date().isoformat()


def local_yesterday(tz: tzinfo, now: Optional[datetime] = None) -> str:
    """Yesterday's date (YYYY-MM-DD) in the league timezone."""
    return (local_now(tz, now).date() - timedelta(days=1)).isoformat()


def parse_date(value: str) -> date:
    """
    Parse a YYYY-MM-DD string.

    Raises:
        ValueError: If the value is not a calendar date
    """
    return date.fromisoformat(value.strip())


def date_range(start: str, end: str) -> list[str]:
    """
    All dates between start and end, inclusive, as YYYY-MM-DD strings.

    Example:
        date_range('2024-11-19', '2024-11-21')
        # ['2024-11-19', '2024-11-20', '2024-11-21']
    """
    first = parse_date(start)
    last = parse_date(end)
    if last < first:
        raise ValueError(f'End date {end} is before start date {start}')
    return [(first + timedelta(days=i)).isoformat() for i in range((last - first).days + 1)]
