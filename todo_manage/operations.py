# todo_manage/operations.py
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional, Union

from .records import Status, Todo, to_iso, todo_to_item


@dataclass(frozen=True)
class UpdateStatus:
    id: str
    new_status: Status = Status.EXPIRED
    # stamped as updatedAt so the deletion age counts from the transition
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class CreateIfAbsent:
    record: Todo

    @property
    def id(self) -> str:
        return self.record.id


@dataclass(frozen=True)
class DeleteById:
    id: str


WriteOp = Union[UpdateStatus, CreateIfAbsent, DeleteById]


def to_transact_item(op: WriteOp, table_name: str) -> Dict[str, Any]:
    """Render one operation as a ``TransactWriteItems`` entry.

    Values are plain Python; the resource client serializes them.
    """
    if isinstance(op, UpdateStatus):
        set_expr = ["#status = :status"]
        names = {"#status": "status"}
        values = {":status": int(op.new_status)}
        if op.updated_at is not None:
            set_expr.append("#updatedAt = :updatedAt")
            names["#updatedAt"] = "updatedAt"
            values[":updatedAt"] = to_iso(op.updated_at)
        return {
            "Update": {
                "TableName": table_name,
                "Key": {"id": op.id},
                "UpdateExpression": "SET " + ", ".join(set_expr),
                "ExpressionAttributeNames": names,
                "ExpressionAttributeValues": values,
            }
        }
    if isinstance(op, CreateIfAbsent):
        return {
            "Put": {
                "TableName": table_name,
                "Item": todo_to_item(op.record),
                "ConditionExpression": "attribute_not_exists(#id)",
                "ExpressionAttributeNames": {"#id": "id"},
            }
        }
    if isinstance(op, DeleteById):
        return {"Delete": {"TableName": table_name, "Key": {"id": op.id}}}
    raise TypeError(f"unknown write operation: {op!r}")


def describe(op: WriteOp) -> Dict[str, Any]:
    """JSON-friendly view of an operation (preview endpoint, logs)."""
    if isinstance(op, UpdateStatus):
        view = {"action": "update", "id": op.id, "status": int(op.new_status)}
        if op.updated_at is not None:
            view["updatedAt"] = to_iso(op.updated_at)
        return view
    if isinstance(op, CreateIfAbsent):
        return {"action": "create", "id": op.id, "item": todo_to_item(op.record)}
    if isinstance(op, DeleteById):
        return {"action": "delete", "id": op.id}
    raise TypeError(f"unknown write operation: {op!r}")
