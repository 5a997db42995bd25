"""
Comment threading.

Comments are stored flat with a nullable parent_id. build_comment_tree nests
serialized comments into `replies` lists for recursive rendering:

  - siblings are ordered oldest first (conversation order)
  - a comment whose parent is not in the input set is promoted to a root,
    so a partially loaded thread still renders every comment it was given
  - when root_id is given, that comment's direct children become the roots
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Iterable

# Edits inside this window after creation are not shown as "edited"
EDIT_GRACE = timedelta(seconds=1)


def _sort_key(node: dict[str, Any]) -> tuple[str, str]:
    return (node.get("created_at") or "", str(node.get("id")))


def build_comment_tree(
    comments: Iterable[dict[str, Any]],
    root_id: str | None = None,
) -> list[dict[str, Any]]:
    nodes: dict[str, dict[str, Any]] = {}
    for comment in comments:
        node = dict(comment)
        node["replies"] = []
        nodes[str(node["id"])] = node

    roots: list[dict[str, Any]] = []
    for node in nodes.values():
        parent_id = node.get("parent_id")
        parent_key = str(parent_id) if parent_id is not None else None
        if parent_key is not None and parent_key != root_id and parent_key in nodes:
            nodes[parent_key]["replies"].append(node)
        else:
            roots.append(node)

    for node in nodes.values():
        node["replies"].sort(key=_sort_key)
        node["reply_count"] = len(node["replies"])
    roots.sort(key=_sort_key)
    return roots


def is_edited(created_at: datetime | None, updated_at: datetime | None) -> bool:
    if created_at is None or updated_at is None:
        return False
    return updated_at > created_at + EDIT_GRACE
