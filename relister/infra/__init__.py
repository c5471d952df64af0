"""Infra layer: remote invocation transports and processing-record stores."""

from .dynamo import DynamoRecordStore
from .invoker import HttpTransport, LambdaTransport, RemoteInvoker, Transport, build_transport
from .records import RecordStore, UpsertRequest
from .storage import SQLiteManager, SQLiteRecordStore

__all__ = [
    "DynamoRecordStore",
    "HttpTransport",
    "LambdaTransport",
    "RecordStore",
    "RemoteInvoker",
    "SQLiteManager",
    "SQLiteRecordStore",
    "Transport",
    "UpsertRequest",
    "build_transport",
]
