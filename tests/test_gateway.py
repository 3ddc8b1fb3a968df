from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError
from conftest import NOW, make_todo

from todo_manage.gateway import MAX_TRANSACT_ITEMS, DynamoGateway, MemoryGateway
from todo_manage.operations import CreateIfAbsent, DeleteById, UpdateStatus
from todo_manage.records import Status, todo_to_item
from todo_manage.result import ReadErrorKind, WriteErrorKind


def _client_error(code, operation="TransactWriteItems"):
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


def _item(id, status=0, **extra):
    item = {
        "id": id,
        "status": Decimal(status),
        "title": "t",
        "targetAt": "2024-05-01T00:00:00.000Z",
        "updatedAt": "2024-05-01T00:00:00.000Z",
        "carryOver": False,
    }
    item.update(extra)
    return item


@pytest.fixture
def table():
    table = MagicMock()
    table.name = "TodoTable"
    return table


class TestReadSnapshot:
    def test_single_page(self, table):
        table.scan.return_value = {"Items": [_item("a"), _item("b", 1)], "Count": 2}
        result = DynamoGateway(table).read_snapshot()

        assert result.is_ok
        assert [t.id for t in result.value] == ["a", "b"]
        assert result.value[1].status is Status.EXPIRED
        table.scan.assert_called_once_with()

    def test_follows_pagination(self, table):
        table.scan.side_effect = [
            {"Items": [_item("a")], "LastEvaluatedKey": {"id": "a"}},
            {"Items": [_item("b")]},
        ]
        result = DynamoGateway(table).read_snapshot()

        assert [t.id for t in result.value] == ["a", "b"]
        assert table.scan.call_args_list[1].kwargs == {"ExclusiveStartKey": {"id": "a"}}

    def test_zero_items_is_ok(self, table):
        table.scan.return_value = {"Items": [], "Count": 0}
        result = DynamoGateway(table).read_snapshot()
        assert result.is_ok
        assert result.value == []

    def test_missing_items_field_is_no_data(self, table):
        table.scan.return_value = {"Count": 0}
        result = DynamoGateway(table).read_snapshot()
        assert result.error is ReadErrorKind.NO_DATA

    def test_client_error_is_transport(self, table):
        table.scan.side_effect = _client_error("ResourceNotFoundException", "Scan")
        result = DynamoGateway(table).read_snapshot()
        assert result.error is ReadErrorKind.TRANSPORT

    def test_connection_error_is_transport(self, table):
        table.scan.side_effect = EndpointConnectionError(endpoint_url="http://localhost:8000")
        result = DynamoGateway(table).read_snapshot()
        assert result.error is ReadErrorKind.TRANSPORT

    def test_unreadable_items_are_skipped(self, table):
        table.scan.return_value = {
            "Items": [_item("a"), {"title": "no id"}, _item("c", 7), _item("d", targetAt="soon")]
        }
        result = DynamoGateway(table).read_snapshot()
        assert [t.id for t in result.value] == ["a"]

    @pytest.mark.parametrize(
        "comment",
        ["free text", {"contentList": ["x"]}, {"contentList": 3}],
    )
    def test_malformed_comment_is_skipped(self, table, comment):
        table.scan.return_value = {"Items": [_item("good"), _item("bad", comment=comment)]}
        result = DynamoGateway(table).read_snapshot()
        assert result.is_ok
        assert [t.id for t in result.value] == ["good"]

    def test_later_page_missing_items_is_no_data(self, table):
        table.scan.side_effect = [
            {"Items": [_item("a")], "LastEvaluatedKey": {"id": "a"}},
            {"Count": 0},
        ]
        result = DynamoGateway(table).read_snapshot()
        assert result.error is ReadErrorKind.NO_DATA


class TestSubmitBatch:
    def test_renders_transaction(self, table):
        successor = make_todo(id="new-1", owner=None)
        ops = [
            UpdateStatus("a", Status.EXPIRED, NOW),
            CreateIfAbsent(successor),
            DeleteById("b"),
        ]
        result = DynamoGateway(table).submit_batch(ops)

        assert result.is_ok
        (call,) = table.meta.client.transact_write_items.call_args_list
        update, put, delete = call.kwargs["TransactItems"]
        assert update == {
            "Update": {
                "TableName": "TodoTable",
                "Key": {"id": "a"},
                "UpdateExpression": "SET #status = :status, #updatedAt = :updatedAt",
                "ExpressionAttributeNames": {"#status": "status", "#updatedAt": "updatedAt"},
                "ExpressionAttributeValues": {":status": 1, ":updatedAt": "2024-05-20T15:00:00.000Z"},
            }
        }
        assert put == {
            "Put": {
                "TableName": "TodoTable",
                "Item": todo_to_item(successor),
                "ConditionExpression": "attribute_not_exists(#id)",
                "ExpressionAttributeNames": {"#id": "id"},
            }
        }
        assert "owner" not in put["Put"]["Item"]
        assert delete == {"Delete": {"TableName": "TodoTable", "Key": {"id": "b"}}}

    def test_empty_batch_is_not_sent(self, table):
        assert DynamoGateway(table).submit_batch([]).is_ok
        table.meta.client.transact_write_items.assert_not_called()

    @pytest.mark.parametrize(
        "code", ["TransactionCanceledException", "ConditionalCheckFailedException"]
    )
    def test_cancelled_transaction_is_constraint_violation(self, table, code):
        table.meta.client.transact_write_items.side_effect = _client_error(code)
        result = DynamoGateway(table).submit_batch([DeleteById("a")])
        assert result.error is WriteErrorKind.CONSTRAINT_VIOLATION

    def test_other_client_error_is_transport(self, table):
        table.meta.client.transact_write_items.side_effect = _client_error(
            "ProvisionedThroughputExceededException"
        )
        result = DynamoGateway(table).submit_batch([DeleteById("a")])
        assert result.error is WriteErrorKind.TRANSPORT

    def test_oversized_batch_is_rejected_before_sending(self, table):
        ops = [DeleteById(str(i)) for i in range(MAX_TRANSACT_ITEMS + 1)]
        result = DynamoGateway(table).submit_batch(ops)
        assert result.error is WriteErrorKind.CONSTRAINT_VIOLATION
        table.meta.client.transact_write_items.assert_not_called()

    def test_explicit_client_is_used(self, table):
        client = MagicMock()
        DynamoGateway(table, client=client).submit_batch([DeleteById("a")])
        client.transact_write_items.assert_called_once()
        table.meta.client.transact_write_items.assert_not_called()

    def test_duplicate_target_is_rejected_before_sending(self, table):
        result = DynamoGateway(table).submit_batch([UpdateStatus("a"), DeleteById("a")])
        assert result.error is WriteErrorKind.CONSTRAINT_VIOLATION
        table.meta.client.transact_write_items.assert_not_called()


class TestMemoryGateway:
    def test_update_create_delete(self):
        gateway = MemoryGateway([_item("a"), _item("b", 1)])
        result = gateway.submit_batch(
            [
                UpdateStatus("a", Status.EXPIRED, NOW),
                CreateIfAbsent(make_todo(id="c")),
                DeleteById("b"),
            ]
        )
        assert result.is_ok
        items = {it["id"]: it for it in gateway.items()}
        assert set(items) == {"a", "c"}
        assert items["a"]["status"] == 1

    def test_collision_leaves_store_unchanged(self):
        gateway = MemoryGateway([_item("a"), _item("c")])
        before = gateway.items()
        result = gateway.submit_batch(
            [DeleteById("a"), CreateIfAbsent(make_todo(id="c"))]
        )
        assert result.error is WriteErrorKind.CONSTRAINT_VIOLATION
        assert gateway.items() == before

    def test_replayed_batch_is_rejected(self):
        gateway = MemoryGateway()
        batch = [CreateIfAbsent(make_todo(id="c"))]
        assert gateway.submit_batch(batch).is_ok
        assert gateway.submit_batch(batch).error is WriteErrorKind.CONSTRAINT_VIOLATION
        assert len(gateway.items()) == 1

    def test_items_are_copies(self):
        gateway = MemoryGateway([_item("a")])
        gateway.items()[0]["status"] = 1
        assert gateway.items()[0]["status"] == 0

    def test_oversized_batch_leaves_store_unchanged(self):
        gateway = MemoryGateway([_item("a")])
        before = gateway.items()
        ops = [DeleteById(str(i)) for i in range(MAX_TRANSACT_ITEMS)] + [DeleteById("a")]
        assert gateway.submit_batch(ops).error is WriteErrorKind.CONSTRAINT_VIOLATION
        assert gateway.items() == before

    def test_same_id_twice_leaves_store_unchanged(self):
        gateway = MemoryGateway([_item("a")])
        before = gateway.items()
        result = gateway.submit_batch([UpdateStatus("a", Status.EXPIRED, NOW), DeleteById("a")])
        assert result.error is WriteErrorKind.CONSTRAINT_VIOLATION
        assert gateway.items() == before
