"""Binding reads that honor template locals, and local-state addressing.

A node that declares `state` owns a local scope. Inside it, templates and
bindings read the scope's values as `local.<key>`, and writes to `local.<key>`
land in the store under `$local.<scope key>.<key>`, so every scope (and every
forEach repetition of one) keeps its own values.
"""

import re
from typing import Any, Mapping

from ..core.logging_config import get_logger
from ..state.paths import StatePathError, get_in, parse_path

logger = get_logger(__name__)

LOCAL = "local"
LOCAL_STATE_KEY = "$local"
LOCAL_SCOPE = "$localScope"
REPEAT = "$repeat"

_UNSAFE = re.compile(r"[^A-Za-z0-9_]")


def read_binding(path: str, snapshot: Mapping[str, Any], locals: Mapping[str, Any] | None = None) -> Any:
    """
    Read a bound path; a first segment naming a local (e.g. `item.title`) reads the local.

    Unparseable paths log and read as None.
    """
    try:
        segments = parse_path(path)
    except StatePathError as e:
        logger.warning("binding_path_invalid", path=path, error=str(e))
        return None
    head = segments[0]
    if locals and isinstance(head, str) and head in locals:
        return get_in({head: locals[head]}, segments)
    return get_in(snapshot, segments)


def local_scope_key(node_id: str, repeat: tuple[int, ...] = ()) -> str:
    """`("card-1", (2,))` -> `card_1_2`: one store key per node and repetition."""
    return "_".join([_UNSAFE.sub("_", node_id), *(str(index) for index in repeat)])


def enter_local_scope(
    node_id: str, declared: Mapping[str, Any], snapshot: Mapping[str, Any], scope: Mapping[str, Any]
) -> dict[str, Any]:
    """Scope for a node's subtree: declared values overlaid with anything written since."""
    key = local_scope_key(node_id, tuple(scope.get(REPEAT, ())))
    stored = get_in(snapshot, (LOCAL_STATE_KEY, key))
    values = {**declared, **(stored if isinstance(stored, dict) else {})}
    return {**scope, LOCAL: values, LOCAL_SCOPE: key}


def is_local_path(path: str) -> bool:
    return path == LOCAL or (path.startswith(LOCAL) and path[len(LOCAL)] in ".[")


def local_state_path(path: str, scope: Mapping[str, Any]) -> str:
    """
    Store path for a write.

    `local.<key>` inside a local scope maps to that scope's storage. Every other
    path, including `local.<key>` outside any scope, is returned unchanged.
    """
    key = scope.get(LOCAL_SCOPE)
    if key is None or not is_local_path(path):
        return path
    return f"{LOCAL_STATE_KEY}.{key}{path[len(LOCAL):]}"
