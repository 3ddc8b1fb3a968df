# todo_manage/orchestrator.py
"""Drives one lifecycle run: read, classify, carry over, reconcile, write."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from .carryover import build_successor, new_id
from .classifier import classify
from .config import Settings
from .operations import CreateIfAbsent, DeleteById, UpdateStatus, WriteOp, describe
from .reconciler import reconcile
from .records import now_utc, to_iso
from .result import Result, err, ok

logger = logging.getLogger(__name__)


class Outcome(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class Plan:
    now: datetime
    operations: List[WriteOp] = field(default_factory=list)
    superseded_ids: List[str] = field(default_factory=list)

    def _count(self, kind) -> int:
        return sum(1 for op in self.operations if isinstance(op, kind))

    @property
    def updated(self) -> int:
        return self._count(UpdateStatus)

    @property
    def created(self) -> int:
        return self._count(CreateIfAbsent)

    @property
    def deleted(self) -> int:
        return self._count(DeleteById)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "now": to_iso(self.now),
            "updated": self.updated,
            "created": self.created,
            "deleted": self.deleted,
            "superseded": list(self.superseded_ids),
            "operations": [describe(op) for op in self.operations],
        }


@dataclass(frozen=True)
class RunReport:
    outcome: Outcome
    now: datetime
    updated: int = 0
    created: int = 0
    deleted: int = 0
    superseded_ids: List[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.COMPLETED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "outcome": self.outcome.value,
            "now": to_iso(self.now),
            "updated": self.updated,
            "created": self.created,
            "deleted": self.deleted,
            "superseded": list(self.superseded_ids),
            "error": self.error,
        }


class LifecycleOrchestrator:
    """One daily pass over the todo table.

    Args:
        settings: Thresholds and table settings for the run.
        gateway: Object with ``read_snapshot()`` and ``submit_batch(ops)``.
        clock: Returns the run timestamp; called once per run.
        id_factory: Generates ids for carried-over todos.
    """

    def __init__(
        self,
        settings: Settings,
        gateway,
        clock: Callable[[], datetime] = now_utc,
        id_factory: Callable[[], str] = new_id,
    ):
        self.settings = settings
        self.gateway = gateway
        self.clock = clock
        self.id_factory = id_factory

    def plan(self, now: Optional[datetime] = None) -> Result:
        """Compute the batch for a run without writing anything.

        Returns ``ok(Plan)`` or ``err(ReadErrorKind)``.
        """
        now = now or self.clock()
        snapshot = self.gateway.read_snapshot()
        if not snapshot.is_ok:
            return err(snapshot.error)

        s = self.settings
        classification = classify(
            snapshot.value,
            now,
            s.expire_after_days,
            s.delete_after_days,
            purge_overdue_on_expiry=s.purge_overdue_on_expiry,
        )
        expirations = []
        for todo in classification.expiring:
            successor = build_successor(todo, now, s.reset_add_days, self.id_factory)
            if successor is not None:
                logger.debug("carrying %s over as %s", todo.id, successor.id)
            expirations.append((todo, successor))

        merged = reconcile(expirations, classification.purging, now)
        logger.debug(
            "snapshot=%d expiring=%d purging=%d",
            len(snapshot.value),
            len(classification.expiring),
            len(classification.purging),
        )
        return ok(Plan(now=now, operations=merged.operations, superseded_ids=merged.superseded_ids))

    def run(self, now: Optional[datetime] = None) -> RunReport:
        now = now or self.clock()
        planned = self.plan(now)
        if not planned.is_ok:
            logger.error("lifecycle run failed reading snapshot: %s", planned.error.value)
            return RunReport(Outcome.FAILED, now, error=planned.error.value)

        plan = planned.value
        report = RunReport(
            Outcome.COMPLETED,
            now,
            updated=plan.updated,
            created=plan.created,
            deleted=plan.deleted,
            superseded_ids=plan.superseded_ids,
        )
        if not plan.operations:
            logger.info("lifecycle run completed: nothing to do")
            return report

        written = self.gateway.submit_batch(plan.operations)
        if not written.is_ok:
            logger.error(
                "lifecycle run failed writing %d operations: %s",
                len(plan.operations),
                written.error.value,
            )
            return RunReport(
                Outcome.FAILED,
                now,
                superseded_ids=plan.superseded_ids,
                error=written.error.value,
            )

        logger.info(
            "lifecycle run completed: updated=%d created=%d deleted=%d",
            report.updated,
            report.created,
            report.deleted,
        )
        return report
