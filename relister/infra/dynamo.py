"""DynamoDB-backed processing-record store."""

from __future__ import annotations

import json
from decimal import Decimal
from typing import Any, Iterable

import boto3
import structlog
from boto3.dynamodb.types import TypeDeserializer, TypeSerializer

from .records import UpsertRequest

KEY_ATTRIBUTE = "id"

_serializer = TypeSerializer()
_deserializer = TypeDeserializer()


def _to_dynamo_safe(value: Any) -> Any:
    # DynamoDB numbers must be Decimal, never float
    return json.loads(json.dumps(value), parse_float=Decimal)


def _from_dynamo(value: Any) -> Any:
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, dict):
        return {k: _from_dynamo(v) for k, v in value.items()}
    if isinstance(value, (list, set)):
        return [_from_dynamo(v) for v in value]
    return value


def build_update_arguments(request: UpsertRequest) -> dict[str, Any]:
    """Translate an upsert into ``UpdateItem`` expression arguments.

    Attribute names and values go through ``#nN``/``:vN`` placeholders so
    reserved words never clash; create-only attributes use ``if_not_exists``.
    """

    names: dict[str, str] = {}
    values: dict[str, Any] = {}
    clauses: list[str] = []
    attributes = list(request.overwrite.items()) + list(request.create_only.items())
    for index, (attribute, value) in enumerate(attributes):
        name_ref, value_ref = f"#n{index}", f":v{index}"
        names[name_ref] = attribute
        values[value_ref] = _serializer.serialize(_to_dynamo_safe(value))
        if attribute in request.create_only:
            clauses.append(f"{name_ref} = if_not_exists({name_ref}, {value_ref})")
        else:
            clauses.append(f"{name_ref} = {value_ref}")
    return {
        "UpdateExpression": "SET " + ", ".join(clauses),
        "ExpressionAttributeNames": names,
        "ExpressionAttributeValues": values,
    }


class DynamoRecordStore:
    """Processing records in one DynamoDB table keyed by a string ``id``."""

    def __init__(
        self,
        table_name: str,
        client: Any = None,
        region: str | None = None,
        batch_read_limit: int = 100,
    ) -> None:
        self.table_name = table_name
        self.client = client or boto3.client("dynamodb", region_name=region)
        self.batch_read_limit = batch_read_limit
        self.logger = structlog.get_logger("relister.store").bind(table=table_name)

    def batch_get(self, keys: Iterable[str]) -> dict[str, dict[str, Any]]:
        unique = list(dict.fromkeys(keys))
        if len(unique) > self.batch_read_limit:
            raise ValueError(
                f"batch_get accepts at most {self.batch_read_limit} keys, got {len(unique)}"
            )
        records: dict[str, dict[str, Any]] = {}
        if not unique:
            return records
        request: dict[str, Any] = {
            self.table_name: {"Keys": [{KEY_ATTRIBUTE: {"S": key}} for key in unique]}
        }
        while request:
            response = self.client.batch_get_item(RequestItems=request)
            for item in response.get("Responses", {}).get(self.table_name, []):
                record = {name: _from_dynamo(_deserializer.deserialize(v)) for name, v in item.items()}
                records[record[KEY_ATTRIBUTE]] = record
            request = response.get("UnprocessedKeys") or {}
            if request:
                self.logger.debug("batch_get_unprocessed", remaining=len(request[self.table_name]["Keys"]))
        return records

    def upsert(self, request: UpsertRequest) -> None:
        self.client.update_item(
            TableName=self.table_name,
            Key={KEY_ATTRIBUTE: {"S": request.key}},
            **build_update_arguments(request),
        )


__all__ = ["DynamoRecordStore", "KEY_ATTRIBUTE", "build_update_arguments"]
