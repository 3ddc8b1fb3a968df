# todo_manage/carryover.py
import uuid
from datetime import datetime, timedelta
from typing import Callable, Optional

from .records import Comment, Todo


def new_id() -> str:
    return str(uuid.uuid4())


def carry_over_comment(comment: Comment) -> Comment:
    """Keep only the unfinished sub-items, in their original order."""
    return Comment(
        comment_type=comment.comment_type,
        free_comment=comment.free_comment,
        content_list=[c for c in comment.content_list if c.complete is False],
    )


def build_successor(
    todo: Todo,
    now: datetime,
    reset_add_days: int = 3,
    id_factory: Callable[[], str] = new_id,
) -> Optional[Todo]:
    """Return the follow-up todo for an expiring recurring todo, or None.

    None when ``carry_over`` is off or every sub-item is already complete.
    ``now`` is the run timestamp, shared by every successor of one run.
    """
    if not todo.carry_over:
        return None

    comment = carry_over_comment(todo.comment)
    if not comment.content_list:
        return None

    return Todo(
        id=id_factory(),
        status=todo.status,
        title=todo.title,
        comment=comment,
        url=todo.url,
        target_at=now + timedelta(days=reset_add_days),
        carry_over=todo.carry_over,
        created_at=todo.created_at,
        updated_at=now,
        updated_user=todo.updated_user,
        owner=None,
    )
