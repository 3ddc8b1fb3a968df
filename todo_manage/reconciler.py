# todo_manage/reconciler.py
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from .operations import CreateIfAbsent, DeleteById, UpdateStatus, WriteOp
from .records import Status, Todo

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Reconciliation:
    operations: List[WriteOp] = field(default_factory=list)
    superseded_ids: List[str] = field(default_factory=list)


def reconcile(
    expirations: Iterable[Tuple[Todo, Optional[Todo]]],
    purging: Iterable[Todo],
    now: Optional[datetime] = None,
) -> Reconciliation:
    """Merge expiry and deletion decisions into one conflict-free batch.

    ``expirations`` pairs each expiring todo with its successor (or None).
    A todo selected for deletion loses its status update; its successor
    is still created. Order: kept updates, creates, deletes. Kept
    updates are stamped with ``now`` as their new updatedAt.
    """
    deletes: List[DeleteById] = []
    delete_ids = set()
    for todo in purging:
        if todo.id in delete_ids:
            continue
        delete_ids.add(todo.id)
        deletes.append(DeleteById(todo.id))

    updates: List[UpdateStatus] = []
    creates: List[CreateIfAbsent] = []
    superseded: List[str] = []
    for todo, successor in expirations:
        if todo.id in delete_ids:
            superseded.append(todo.id)
            logger.warning("update of %s superseded by delete", todo.id)
        else:
            updates.append(UpdateStatus(todo.id, Status.EXPIRED, now))
        if successor is not None:
            creates.append(CreateIfAbsent(successor))

    return Reconciliation(
        operations=[*updates, *creates, *deletes],
        superseded_ids=superseded,
    )
