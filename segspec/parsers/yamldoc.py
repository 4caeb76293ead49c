# CUI // SP-CTI
"""YAML helpers shared by the Spring, Compose and Kubernetes extractors."""

import logging
from typing import Any, Dict, Iterator, List, Optional, Set

import yaml

from segspec.resilience.errors import ParseError

logger = logging.getLogger("segspec.parsers.yamldoc")


def decode_text(data: bytes) -> str:
    """Decode file bytes as UTF-8, replacing undecodable bytes."""
    if isinstance(data, str):
        return data
    return data.decode("utf-8", errors="replace")


def load_documents(text: str, path: str) -> Iterator[Any]:
    """Yield each ``---`` separated document.

    Decoding stops at the first failure, including scalars PyYAML matches
    but cannot construct (``2023-13-45`` as a timestamp). Documents already
    yielded stay valid; a failure on the very first document raises
    ParseError.
    """
    documents = yaml.safe_load_all(text)
    index = 0
    while True:
        try:
            doc = next(documents)
        except StopIteration:
            return
        except (yaml.YAMLError, ValueError) as exc:
            if index == 0:
                raise ParseError(f"invalid YAML: {exc}", path=path) from exc
            logger.warning("%s: stopped at document %d: %s", path, index + 1, exc)
            return
        index += 1
        yield doc


def load_single(text: str, path: str) -> Any:
    """Parse a single-document YAML file, raising ParseError when malformed."""
    try:
        return yaml.safe_load(text)
    except (yaml.YAMLError, ValueError) as exc:
        raise ParseError(f"invalid YAML: {exc}", path=path) from exc


def navigate_map(doc: Any, *keys: str) -> Optional[Dict[str, Any]]:
    """Follow nested mapping keys; None if any step is not a mapping."""
    current = doc
    for key in keys:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current if isinstance(current, dict) else None


def navigate_list(doc: Any, *keys: str) -> List[Any]:
    """Follow nested keys to a list; empty list when absent or mistyped."""
    if not keys:
        return []
    parent = navigate_map(doc, *keys[:-1]) if len(keys) > 1 else doc
    if not isinstance(parent, dict):
        return []
    value = parent.get(keys[-1])
    return value if isinstance(value, list) else []


def to_int(value: Any) -> int:
    """Coerce YAML scalars to int; 0 when not a number."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        try:
            return int(value)
        except (OverflowError, ValueError):
            return 0
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return 0
    return 0


def walk_strings(node: Any) -> Iterator[str]:
    """Yield every string leaf of a decoded YAML tree.

    Anchored nodes are visited once, so self-referencing aliases terminate.
    """
    seen: Set[int] = set()
    stack = [node]
    while stack:
        current = stack.pop()
        if isinstance(current, str):
            yield current
            continue
        if not isinstance(current, (dict, list)):
            continue
        if id(current) in seen:
            continue
        seen.add(id(current))
        children = list(current.values()) if isinstance(current, dict) else current
        stack.extend(reversed(children))
