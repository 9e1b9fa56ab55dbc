"""
YAML frontmatter parsing.

A document starts with a ``---`` line, followed by YAML mapping lines,
followed by another ``---`` line. Everything after the second delimiter is
the markdown body.
"""

import datetime
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple, Union

import yaml

from .errors import InvalidDate, MalformedDocument, MissingField, TypeMismatch

DELIMITER = '---'
DATE_FORMAT = '%Y-%m-%d'
DATE_RE = re.compile(r'^\d{4}-\d{2}-\d{2}$')


class FrontmatterLoader(yaml.SafeLoader):
    """Safe loader that leaves timestamps as plain strings."""


FrontmatterLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != 'tag:yaml.org,2002:timestamp']
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def _is_delimiter(line: str) -> bool:
    return line.rstrip('\r\n') == DELIMITER


def parse_frontmatter(data: Union[bytes, str], source: Optional[str] = None) -> Tuple[Dict[str, Any], str]:
    """
    Split a document into its frontmatter mapping and its body.

    Args:
        data: Raw document, bytes are decoded as UTF-8.
        source: File name used in error messages.

    Returns:
        A ``(mapping, body)`` tuple.

    Raises:
        MalformedDocument: If a delimiter is missing or the header is not a
            YAML mapping with string keys.
    """
    if isinstance(data, bytes):
        try:
            data = data.decode('utf-8')
        except UnicodeDecodeError as e:
            raise MalformedDocument(f"document is not valid UTF-8: {e}", source)

    lines = data.splitlines(keepends=True)
    start = end = None
    for number, line in enumerate(lines):
        if not _is_delimiter(line):
            continue
        if start is None:
            start = number
        else:
            end = number
            break

    if start is None:
        raise MalformedDocument("frontmatter opening '---' not found", source)
    if end is None:
        raise MalformedDocument("frontmatter closing '---' not found", source)

    header = ''.join(lines[start + 1:end])
    body = ''.join(lines[end + 1:])

    try:
        mapping = yaml.load(header, Loader=FrontmatterLoader)
    except yaml.YAMLError as e:
        raise MalformedDocument(f"invalid YAML frontmatter: {e}", source)

    if mapping is None:
        mapping = {}
    if not isinstance(mapping, dict):
        raise MalformedDocument(
            f"frontmatter must be a mapping, got {type(mapping).__name__}", source
        )
    for key in mapping:
        if not isinstance(key, str):
            raise MalformedDocument(f"frontmatter key {key!r} is not a string", source)

    return mapping, body


def require_str(mapping: Dict[str, Any], key: str, source: Optional[str] = None) -> str:
    if key not in mapping or mapping[key] is None:
        raise MissingField(key, source)
    value = mapping[key]
    if not isinstance(value, str):
        raise TypeMismatch(key, 'a string', value, source)
    return value


def optional_bool(mapping: Dict[str, Any], key: str, default: bool = False,
                  source: Optional[str] = None) -> bool:
    value = mapping.get(key)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise TypeMismatch(key, 'a boolean', value, source)
    return value


def optional_date(mapping: Dict[str, Any], key: str, source: Optional[str] = None) -> Optional[datetime.date]:
    value = mapping.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise TypeMismatch(key, 'a YYYY-MM-DD string', value, source)
    if not DATE_RE.match(value):
        raise InvalidDate(value, source)
    try:
        return datetime.datetime.strptime(value, DATE_FORMAT).date()
    except ValueError:
        raise InvalidDate(value, source)


@dataclass(frozen=True)
class PostHeader:
    """Validated frontmatter of a post."""
    title: str
    date: Optional[datetime.date] = None
    draft: bool = False
    extra: Dict[str, Any] = field(default_factory=dict)


POST_KEYS = ('title', 'date', 'draft')


def parse_post_header(mapping: Dict[str, Any], source: Optional[str] = None) -> PostHeader:
    """Validate a post frontmatter mapping, raising a typed ``BuildError`` on the first problem."""
    return PostHeader(
        title=require_str(mapping, 'title', source),
        date=optional_date(mapping, 'date', source),
        draft=optional_bool(mapping, 'draft', source=source),
        extra={k: v for k, v in mapping.items() if k not in POST_KEYS},
    )
