"""Comment threading helpers."""

from datetime import datetime, timedelta, timezone

from citybasic.comments.tree import build_comment_tree, is_edited


def _c(id, parent_id=None, minute=0):
    created = datetime(2026, 3, 1, 10, minute, tzinfo=timezone.utc)
    return {"id": id, "parent_id": parent_id, "created_at": created.isoformat()}


def test_nests_replies_oldest_first():
    tree = build_comment_tree([_c("b", "a", 5), _c("a"), _c("c", "a", 1), _c("d", "c", 2)])
    assert [n["id"] for n in tree] == ["a"]
    assert [n["id"] for n in tree[0]["replies"]] == ["c", "b"]
    assert tree[0]["replies"][0]["replies"][0]["id"] == "d"
    assert tree[0]["reply_count"] == 2


def test_orphans_are_promoted_to_roots():
    tree = build_comment_tree([_c("x", "missing", 3), _c("y", None, 1)])
    assert [n["id"] for n in tree] == ["y", "x"]


def test_root_id_children_become_roots():
    tree = build_comment_tree([_c("r1", "root", 1), _c("r2", "r1", 2)], root_id="root")
    assert [n["id"] for n in tree] == ["r1"]
    assert tree[0]["replies"][0]["id"] == "r2"


def test_input_is_not_mutated():
    original = _c("a")
    build_comment_tree([original])
    assert "replies" not in original


def test_is_edited_uses_grace_window():
    created = datetime(2026, 3, 1, tzinfo=timezone.utc)
    assert is_edited(created, created + timedelta(milliseconds=500)) is False
    assert is_edited(created, created + timedelta(seconds=2)) is True
    assert is_edited(created, None) is False
