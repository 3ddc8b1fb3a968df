# todo_manage/classifier.py
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Iterable, List

from .records import Status, Todo


@dataclass(frozen=True)
class Classification:
    expiring: List[Todo] = field(default_factory=list)
    purging: List[Todo] = field(default_factory=list)


def expiry_threshold(now: datetime, expire_after_days: int) -> datetime:
    return now - timedelta(days=expire_after_days)


def is_expiring(todo: Todo, threshold: datetime) -> bool:
    if todo.status != Status.ACTIVE or todo.target_at is None:
        return False
    return todo.target_at <= threshold


def is_purgeable(todo: Todo, threshold: datetime) -> bool:
    if todo.status != Status.EXPIRED or todo.updated_at is None:
        return False
    return todo.updated_at <= threshold


def classify(
    todos: Iterable[Todo],
    now: datetime,
    expire_after_days: int,
    delete_after_days: int,
    purge_overdue_on_expiry: bool = False,
) -> Classification:
    """Split a snapshot into records to expire and records to delete.

    Both lists keep snapshot order. With ``purge_overdue_on_expiry`` an
    expiring record whose due date is also past the deletion threshold is
    listed in ``purging`` as well; the reconciler decides between the two.
    """
    expire_limit = expiry_threshold(now, expire_after_days)
    delete_limit = now - timedelta(days=delete_after_days)

    expiring, purging = [], []
    for todo in todos:
        if is_expiring(todo, expire_limit):
            expiring.append(todo)
            if purge_overdue_on_expiry and todo.target_at <= delete_limit:
                purging.append(todo)
        elif is_purgeable(todo, delete_limit):
            purging.append(todo)

    return Classification(expiring=expiring, purging=purging)
