"""
Helpers for working with configuration trees.

Configuration trees are plain nested dicts and lists as produced by the JSON
and YAML parsers. Everything here returns new trees and leaves its inputs
untouched.
"""

import copy
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Sequence, Tuple

from archfolio.core.enums import ChangeKind
from archfolio.core.exceptions import ConfigurationError


_MISSING = object()


@dataclass(frozen=True)
class ConfigChange:
    """One structural difference between two configuration snapshots."""
    path: Tuple[str, ...]
    old_value: Any
    new_value: Any
    kind: ChangeKind

    @property
    def dotted_path(self) -> str:
        return ".".join(self.path)


def is_mapping(value: Any) -> bool:
    return isinstance(value, dict)


def deep_merge(*configs: Dict[str, Any]) -> Dict[str, Any]:
    """
    Merge configuration dicts left to right.

    Nested dicts combine key by key; lists and scalars from a later dict
    replace earlier ones wholesale. `None` entries are skipped.
    """
    merged: Dict[str, Any] = {}
    for config in configs:
        if config:
            merged = _merge_two(merged, config)
    return merged


def _merge_two(target: Dict[str, Any], source: Dict[str, Any]) -> Dict[str, Any]:
    result = dict(target)
    for key, value in source.items():
        if is_mapping(result.get(key)) and is_mapping(value):
            result[key] = _merge_two(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def get_path(tree: Any, segments: Sequence[str], default: Any = None) -> Any:
    """Look up a path; any missing segment short-circuits to `default`."""
    current = tree
    for segment in segments:
        if is_mapping(current) and segment in current:
            current = current[segment]
        elif isinstance(current, list) and str(segment).isdigit() and int(segment) < len(current):
            current = current[int(segment)]
        else:
            return default
    return current


def has_path(tree: Any, segments: Sequence[str]) -> bool:
    return get_path(tree, segments, _MISSING) is not _MISSING


def set_path(tree: Dict[str, Any], segments: Sequence[str], value: Any,
             merge: bool = False) -> Dict[str, Any]:
    """
    Return a copy of `tree` with `value` stored at `segments`.

    Missing intermediate dicts are created. With `merge`, a dict value is
    deep-merged into an existing dict at the target instead of replacing it.
    An empty path targets the root.
    """
    if not segments:
        if merge and is_mapping(tree) and is_mapping(value):
            return deep_merge(tree, value)
        return copy.deepcopy(value)

    result = copy.deepcopy(tree)
    parent = result
    for depth, segment in enumerate(segments[:-1]):
        parent = _descend(parent, segment, segments[:depth + 1])

    last = segments[-1]
    if isinstance(parent, list):
        index = _list_index(parent, last, segments)
        current = parent[index]
    else:
        current = parent.get(last, _MISSING)

    if merge and is_mapping(current) and is_mapping(value):
        new_value = deep_merge(current, value)
    else:
        new_value = copy.deepcopy(value)

    if isinstance(parent, list):
        parent[index] = new_value
    else:
        parent[last] = new_value
    return result


def _descend(node: Any, segment: str, walked: Sequence[str]) -> Any:
    if is_mapping(node):
        child = node.get(segment)
        if child is None:
            child = node[segment] = {}
        elif not isinstance(child, (dict, list)):
            raise ConfigurationError(
                config_key=".".join(walked), reason="cannot descend into a non-object value"
            )
        return child
    if isinstance(node, list):
        return node[_list_index(node, segment, walked)]
    raise ConfigurationError(config_key=".".join(walked), reason="cannot descend into a non-object value")


def _list_index(node: List[Any], segment: str, walked: Sequence[str]) -> int:
    if not str(segment).isdigit() or int(segment) >= len(node):
        raise ConfigurationError(config_key=".".join(walked), reason=f"list index '{segment}' out of range")
    return int(segment)


def delete_path(tree: Dict[str, Any], segments: Sequence[str]) -> Dict[str, Any]:
    """Return a copy of `tree` without the key at `segments`; missing paths are ignored."""
    result = copy.deepcopy(tree)
    if not segments:
        return result
    parent = get_path(result, segments[:-1], None)
    if is_mapping(parent):
        parent.pop(segments[-1], None)
    return result


def strip_paths(tree: Dict[str, Any], paths: Iterable[Sequence[str]]) -> Dict[str, Any]:
    result = copy.deepcopy(tree)
    for segments in paths:
        parent = get_path(result, segments[:-1], None)
        if is_mapping(parent):
            parent.pop(segments[-1], None)
    return result


def detect_changes(old: Dict[str, Any], new: Dict[str, Any],
                   path: Tuple[str, ...] = ()) -> List[ConfigChange]:
    """
    Structural diff between two trees.

    A key only in `old` is removed, only in `new` is added. Keys in both are
    recursed into when both values are dicts, otherwise compared with `==`
    and reported as modified when they differ.
    """
    changes: List[ConfigChange] = []

    for key, old_value in old.items():
        current_path = path + (key,)
        if key not in new:
            changes.append(ConfigChange(current_path, old_value, None, ChangeKind.REMOVED))
            continue
        new_value = new[key]
        if is_mapping(old_value) and is_mapping(new_value):
            changes.extend(detect_changes(old_value, new_value, current_path))
        elif old_value != new_value:
            changes.append(ConfigChange(current_path, old_value, new_value, ChangeKind.MODIFIED))

    for key, new_value in new.items():
        if key not in old:
            changes.append(ConfigChange(path + (key,), None, new_value, ChangeKind.ADDED))

    return changes


def walk_strings(tree: Any) -> Iterable[str]:
    """Yield every string leaf of a tree."""
    if isinstance(tree, str):
        yield tree
    elif is_mapping(tree):
        for value in tree.values():
            yield from walk_strings(value)
    elif isinstance(tree, list):
        for value in tree:
            yield from walk_strings(value)
