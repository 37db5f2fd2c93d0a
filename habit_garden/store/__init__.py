from .base import (
    ArrayRemove,
    ArrayUnion,
    DELETE_FIELD,
    SERVER_TIMESTAMP,
    DocumentSnapshot,
    DocumentStore,
    Subscription,
    WriteBatch,
)
from .paths import UserPaths
from .sql_store import SqlDocumentStore

__all__ = [
    "ArrayRemove",
    "ArrayUnion",
    "DELETE_FIELD",
    "SERVER_TIMESTAMP",
    "DocumentSnapshot",
    "DocumentStore",
    "Subscription",
    "WriteBatch",
    "UserPaths",
    "SqlDocumentStore",
]
