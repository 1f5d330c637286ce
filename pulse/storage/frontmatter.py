"""YAML frontmatter encoding for record files.

A record file is a ``---`` delimited YAML block, a blank line and a body::

    ---
    id: 6f1c...
    date: 2025-01-28T09:15:02.123456+01:00
    ---

    body text
"""

import uuid
from datetime import datetime
from typing import Any

import yaml

from pulse.storage.errors import InvalidFormat

DELIMITER = "---"


def render_frontmatter(meta: dict[str, Any], body: str) -> str:
    """
    Render a metadata mapping and a body as one record document.

    Args:
        meta: Ordered key/value pairs for the metadata block
        body: Free-form body text

    Returns:
        Full file content
    """
    block = yaml.safe_dump(
        meta, sort_keys=False, default_flow_style=False, allow_unicode=True
    )
    return f"{DELIMITER}\n{block}{DELIMITER}\n\n{body}"


def parse_frontmatter(content: str) -> tuple[str | None, str]:
    """
    Split a record document into its raw metadata block and body.

    Returns:
        (yaml_text, body) - yaml_text is None when no block is present
    """
    lines = content.splitlines(keepends=True)
    if not lines or lines[0].rstrip("\r\n") != DELIMITER:
        return None, content

    for i in range(1, len(lines)):
        if lines[i].rstrip("\r\n") == DELIMITER:
            yaml_text = "".join(lines[1:i])
            body = "".join(lines[i + 1 :])
            if body.startswith("\n"):
                body = body[1:]
            return yaml_text, body

    return None, content


def load_meta(content: str) -> tuple[dict[str, Any], str]:
    """
    Parse a record document into a metadata dict and body.

    Raises:
        InvalidFormat: If the block is missing or is not a YAML mapping
    """
    yaml_text, body = parse_frontmatter(content)
    if yaml_text is None:
        raise InvalidFormat("no frontmatter found")

    try:
        meta = yaml.safe_load(yaml_text)
    except yaml.YAMLError as e:
        raise InvalidFormat(f"failed to parse frontmatter: {e}") from e

    if not isinstance(meta, dict):
        raise InvalidFormat("frontmatter is not a mapping")
    return meta, body


def format_time(dt: datetime) -> str:
    """Format a timestamp as ISO-8601 with microseconds and UTC offset."""
    if dt.tzinfo is None:
        dt = dt.astimezone()
    return dt.isoformat(timespec="microseconds")


def parse_time(value: Any) -> datetime:
    """
    Parse a metadata timestamp into an aware datetime.

    Naive values are taken as local time.

    Raises:
        InvalidFormat: If the value is not a parseable timestamp
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str) and value:
        try:
            dt = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError as e:
            raise InvalidFormat(f"invalid date {value!r}") from e
    else:
        raise InvalidFormat(f"invalid date {value!r}")

    if dt.tzinfo is None:
        dt = dt.astimezone()
    return dt


def parse_uuid(value: Any) -> uuid.UUID:
    """
    Parse a metadata identifier.

    Raises:
        InvalidFormat: If the value is not a valid UUID string
    """
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError) as e:
        raise InvalidFormat(f"invalid UUID {value!r}") from e
