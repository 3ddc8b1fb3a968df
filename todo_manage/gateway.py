# todo_manage/gateway.py
import copy
import logging
import threading
from typing import Any, Dict, Iterable, List, Optional, Sequence

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .config import SAM_LOCAL_REGION, Settings
from .operations import (
    CreateIfAbsent,
    DeleteById,
    UpdateStatus,
    WriteOp,
    to_transact_item,
)
from .records import Todo, to_iso, todo_from_item, todo_to_item
from .result import ReadErrorKind, Result, WriteErrorKind, err, ok

logger = logging.getLogger(__name__)

# DynamoDB TransactWriteItems limit
MAX_TRANSACT_ITEMS = 100

CONSTRAINT_ERROR_CODES = (
    "TransactionCanceledException",
    "ConditionalCheckFailedException",
)


def _parse_items(items: Iterable[Dict[str, Any]]) -> List[Todo]:
    todos = []
    for it in items:
        try:
            todos.append(todo_from_item(it))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("skipping unreadable item %s: %r", it.get("id"), e)
    return todos


def check_batch(operations: Sequence[WriteOp]) -> Optional[Result]:
    """Reject batches DynamoDB would refuse: too large, or one id twice."""
    if len(operations) > MAX_TRANSACT_ITEMS:
        logger.error(
            "batch of %d operations exceeds the %d item transaction limit",
            len(operations),
            MAX_TRANSACT_ITEMS,
        )
        return err(WriteErrorKind.CONSTRAINT_VIOLATION)
    seen = set()
    for op in operations:
        if op.id in seen:
            logger.error("batch targets %s more than once", op.id)
            return err(WriteErrorKind.CONSTRAINT_VIOLATION)
        seen.add(op.id)
    return None


class DynamoGateway:
    """Snapshot reads and atomic batch writes against one DynamoDB table."""

    def __init__(self, table, client=None):
        self.table = table
        # the resource's client serializes plain Python values
        self.client = client or table.meta.client

    @classmethod
    def from_settings(cls, settings: Settings) -> "DynamoGateway":
        kwargs = {}
        if settings.dynamodb_endpoint:
            kwargs["endpoint_url"] = settings.dynamodb_endpoint
        if settings.sam_local:
            kwargs.update(
                region_name=SAM_LOCAL_REGION,
                aws_access_key_id="fake",
                aws_secret_access_key="fake",
            )
        dynamodb = boto3.resource("dynamodb", **kwargs)
        return cls(dynamodb.Table(settings.table_name))

    @property
    def table_name(self) -> str:
        return self.table.name

    def read_snapshot(self) -> Result:
        items: List[Dict[str, Any]] = []
        scan_kwargs: Dict[str, Any] = {}
        try:
            while True:
                resp = self.table.scan(**scan_kwargs)
                # a page without Items would leave the snapshot incomplete
                if "Items" not in resp:
                    logger.error("scan of %s returned no Items field", self.table_name)
                    return err(ReadErrorKind.NO_DATA)
                items.extend(resp["Items"])
                last_key = resp.get("LastEvaluatedKey")
                if not last_key:
                    break
                scan_kwargs["ExclusiveStartKey"] = last_key
        except ClientError as e:
            logger.error("scan of %s failed: %s", self.table_name, e.response["Error"]["Code"])
            return err(ReadErrorKind.TRANSPORT)
        except BotoCoreError as e:
            logger.error("scan of %s failed: %s", self.table_name, e)
            return err(ReadErrorKind.TRANSPORT)

        return ok(_parse_items(items))

    def submit_batch(self, operations: Sequence[WriteOp]) -> Result:
        if not operations:
            return ok()
        rejected = check_batch(operations)
        if rejected is not None:
            return rejected

        transact_items = [to_transact_item(op, self.table_name) for op in operations]
        try:
            self.client.transact_write_items(TransactItems=transact_items)
        except ClientError as e:
            code = e.response["Error"]["Code"]
            logger.error("transaction on %s failed: %s", self.table_name, code)
            if code in CONSTRAINT_ERROR_CODES:
                return err(WriteErrorKind.CONSTRAINT_VIOLATION)
            return err(WriteErrorKind.TRANSPORT)
        except BotoCoreError as e:
            logger.error("transaction on %s failed: %s", self.table_name, e)
            return err(WriteErrorKind.TRANSPORT)
        return ok()


class MemoryGateway:
    """In-process table with the same all-or-nothing batch semantics."""

    table_name = "memory"

    def __init__(self, items: Optional[Iterable[Dict[str, Any]]] = None):
        self._lock = threading.Lock()
        self._items: Dict[str, Dict[str, Any]] = {}
        for it in items or []:
            self._items[it["id"]] = copy.deepcopy(it)

    def put(self, todo: Todo) -> None:
        with self._lock:
            self._items[todo.id] = todo_to_item(todo)

    def items(self) -> List[Dict[str, Any]]:
        with self._lock:
            return copy.deepcopy(list(self._items.values()))

    def read_snapshot(self) -> Result:
        return ok(_parse_items(self.items()))

    def submit_batch(self, operations: Sequence[WriteOp]) -> Result:
        rejected = check_batch(operations)
        if rejected is not None:
            return rejected
        with self._lock:
            staged = copy.deepcopy(self._items)
            for op in operations:
                if isinstance(op, UpdateStatus):
                    item = staged.setdefault(op.id, {"id": op.id})
                    item["status"] = int(op.new_status)
                    if op.updated_at is not None:
                        item["updatedAt"] = to_iso(op.updated_at)
                elif isinstance(op, CreateIfAbsent):
                    if op.id in staged:
                        logger.error("create of %s rejected: id already exists", op.id)
                        return err(WriteErrorKind.CONSTRAINT_VIOLATION)
                    staged[op.id] = todo_to_item(op.record)
                elif isinstance(op, DeleteById):
                    staged.pop(op.id, None)
                else:
                    raise TypeError(f"unknown write operation: {op!r}")
            self._items = staged
        return ok()


def build_gateway(settings: Settings):
    if settings.store_backend == "memory":
        return MemoryGateway()
    return DynamoGateway.from_settings(settings)
