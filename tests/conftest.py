import os
from datetime import datetime, timedelta, timezone
from itertools import count

import pytest

# Keep the module-level Flask app off DynamoDB during tests
os.environ.setdefault("STORE_BACKEND", "memory")

from todo_manage.records import Comment, Content, Status, Todo  # noqa: E402

NOW = datetime(2024, 5, 20, 15, 0, 0, tzinfo=timezone.utc)


def days_ago(n: float) -> datetime:
    return NOW - timedelta(days=n)


def make_todo(
    id="todo-1",
    status=Status.ACTIVE,
    target_days_ago=10,
    updated_days_ago=None,
    carry_over=False,
    contents=(),
    **kwargs,
) -> Todo:
    defaults = dict(
        title="Weekly review",
        url="https://example.com/review",
        created_at="2024-04-01T09:00:00.000Z",
        updated_user="alice",
        owner="alice",
    )
    defaults.update(kwargs)
    return Todo(
        id=id,
        status=status,
        comment=Comment(
            comment_type="check",
            free_comment="notes",
            content_list=[Content(complete=c, content=t) for c, t in contents],
        ),
        target_at=days_ago(target_days_ago) if target_days_ago is not None else None,
        carry_over=carry_over,
        updated_at=days_ago(updated_days_ago) if updated_days_ago is not None else None,
        **defaults,
    )


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def id_factory():
    seq = count(1)
    return lambda: f"new-{next(seq)}"
