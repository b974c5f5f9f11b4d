"""
Field projection — turns ``fields=firstName,metadata.phone`` into a nested
selection tree and applies that tree to loaded records.

A selection maps each field name either to ``True`` (include the whole value)
or to a nested selection for a sub-object::

    >>> build_selection("firstName, metadata.phone,metadata.address")
    {'id': True, 'firstName': True, 'metadata': {'phone': True, 'address': True}}

The identifier is always part of the tree.  Field names are not validated
here; names the store does not know simply come back absent.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Union

ID_FIELD = "id"

Selection = dict[str, Union[bool, "Selection"]]


def build_selection(fields: str | None, exclude: Iterable[str] = ()) -> Selection:
    """Parse a comma-separated list of dot paths into a selection tree.

    Top-level names listed in *exclude* are dropped whatever the caller asked
    for.  A parent selected as a whole wins over any of its sub-paths.
    """
    selection: Selection = {ID_FIELD: True}
    if not fields:
        return selection

    for token in fields.split(","):
        path = [part.strip() for part in token.strip().split(".")]
        if not all(path):
            continue
        _merge_path(selection, path)

    for name in exclude:
        selection.pop(name, None)
    return selection


def _merge_path(node: Selection, path: list[str]) -> None:
    head, *rest = path
    if not rest:
        node[head] = True
        return
    child = node.get(head)
    if child is True:
        return
    if not isinstance(child, dict):
        child = node[head] = {}
    _merge_path(child, rest)


def apply_selection(document: Mapping, selection: Selection) -> dict:
    """Prune *document* down to the shape described by *selection*."""
    result: dict = {}
    for key, sub in selection.items():
        if key not in document:
            continue
        value = document[key]
        if sub is True:
            result[key] = value
        elif isinstance(value, Mapping):
            result[key] = apply_selection(value, sub)  # type: ignore[arg-type]
        elif value is None:
            result[key] = None
    return result
