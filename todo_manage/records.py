# todo_manage/records.py
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import IntEnum
from typing import Any, Dict, List, Optional


class Status(IntEnum):
    ACTIVE = 0
    EXPIRED = 1


@dataclass(frozen=True)
class Content:
    complete: bool
    content: str


@dataclass(frozen=True)
class Comment:
    comment_type: str = ""
    free_comment: str = ""
    content_list: List[Content] = field(default_factory=list)


@dataclass(frozen=True)
class Todo:
    id: str
    status: Status
    title: str = ""
    comment: Comment = field(default_factory=Comment)
    url: str = ""
    target_at: Optional[datetime] = None
    carry_over: bool = False
    created_at: Optional[str] = None
    updated_at: Optional[datetime] = None
    updated_user: Optional[str] = None
    owner: Optional[str] = None


# ---- helpers ----
def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def parse_iso(s: str) -> datetime:
    dt = datetime.fromisoformat(s.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_iso(dt: datetime) -> str:
    """UTC, millisecond precision, ``Z`` suffix (the front end's format)."""
    s = dt.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return s.replace("+00:00", "Z")


def _to_jsonable(v):
    if isinstance(v, list):
        return [_to_jsonable(x) for x in v]
    if isinstance(v, dict):
        return {k: _to_jsonable(val) for k, val in v.items()}
    if isinstance(v, Decimal):
        return int(v) if v == v.to_integral_value() else float(v)
    return v


def _optional_time(v) -> Optional[datetime]:
    if not v:
        return None
    return parse_iso(str(v))


# ---- DynamoDB item <-> Todo ----
def comment_from_item(raw: Optional[Dict[str, Any]]) -> Comment:
    raw = raw or {}
    if not isinstance(raw, dict):
        raise TypeError(f"comment must be a map, got {type(raw).__name__}")
    contents = []
    for c in raw.get("contentList") or []:
        if not isinstance(c, dict):
            raise TypeError(f"contentList entry must be a map, got {type(c).__name__}")
        contents.append(
            Content(complete=bool(c.get("complete", False)), content=c.get("content", ""))
        )
    return Comment(
        comment_type=raw.get("commentType", ""),
        free_comment=raw.get("freeComment", ""),
        content_list=contents,
    )


def todo_from_item(item: Dict[str, Any]) -> Todo:
    """Build a Todo from a DynamoDB item.

    Raises KeyError/ValueError when ``id`` or ``status`` is missing or
    unusable, or a timestamp cannot be parsed.
    """
    item = _to_jsonable(item)
    return Todo(
        id=item["id"],
        status=Status(int(item["status"])),
        title=item.get("title", ""),
        comment=comment_from_item(item.get("comment")),
        url=item.get("url", ""),
        target_at=_optional_time(item.get("targetAt")),
        carry_over=bool(item.get("carryOver", False)),
        created_at=item.get("createdAt"),
        updated_at=_optional_time(item.get("updatedAt")),
        updated_user=item.get("updatedUser"),
        owner=item.get("owner"),
    )


def comment_to_item(comment: Comment) -> Dict[str, Any]:
    return {
        "commentType": comment.comment_type,
        "freeComment": comment.free_comment,
        "contentList": [
            {"complete": c.complete, "content": c.content}
            for c in comment.content_list
        ],
    }


def todo_to_item(todo: Todo) -> Dict[str, Any]:
    item = {
        "id": todo.id,
        "status": int(todo.status),
        "title": todo.title,
        "comment": comment_to_item(todo.comment),
        "url": todo.url,
        "carryOver": todo.carry_over,
    }
    if todo.target_at is not None:
        item["targetAt"] = to_iso(todo.target_at)
    if todo.updated_at is not None:
        item["updatedAt"] = to_iso(todo.updated_at)
    # None values are left out rather than written as NULL
    for key, value in (
        ("createdAt", todo.created_at),
        ("updatedUser", todo.updated_user),
        ("owner", todo.owner),
    ):
        if value is not None:
            item[key] = value
    return item
