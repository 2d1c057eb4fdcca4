"""
Lookup of values inside a node's nested attribute document by path.

A path is either a sequence of segments or a slash-delimited string
("crowbar_wall/ipmi/address"). Mappings are indexed by key, lists by a
decimal index. Anything else, or a missing/None value, stops the walk
with AttributeNotFound.
"""

from typing import Any, List, Mapping, Sequence, Union

from services.errors import AttributeNotFound

AttributePath = Union[str, Sequence[str]]


def split_path(path: AttributePath) -> List[str]:
    """Normalise a path to its list of non-empty segments."""
    if path is None:
        return []
    if isinstance(path, str):
        segments = path.split("/")
    else:
        segments = [str(segment) for segment in path]
    return [segment for segment in segments if segment]


def _step(current: Any, segment: str) -> Any:
    """Descend one level. Returns None when there is nothing to descend into."""
    if isinstance(current, Mapping):
        return current.get(segment)
    if isinstance(current, list) and segment.isascii() and segment.isdigit():
        index = int(segment)
        return current[index] if index < len(current) else None
    return None


def resolve_attribute_path(tree: Mapping[str, Any], path: AttributePath) -> Any:
    """
    Return the value at `path` inside `tree`.

    An empty path returns `tree` itself.

    Raises:
        AttributeNotFound: a segment is missing; `resolved` lists the
            segments that were found before it.
    """
    segments = split_path(path)
    current: Any = tree
    for depth, segment in enumerate(segments):
        current = _step(current, segment)
        if current is None:
            raise AttributeNotFound(segments, segments[:depth])
    return current


def lookup_attribute(tree: Mapping[str, Any], path: AttributePath, default: Any = None) -> Any:
    """Like resolve_attribute_path, but return `default` for a missing path."""
    try:
        return resolve_attribute_path(tree, path)
    except AttributeNotFound:
        return default
