from __future__ import annotations
from abc import ABC, abstractmethod
from collections import defaultdict
from copy import deepcopy
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Mapping, Optional, Set, Tuple
from uuid import uuid4

from loguru import logger

from ..errors import StoreUnavailable


class _Sentinel:
    __slots__ = ("name",)

    def __init__(self, name: str):
        self.name = name

    def __repr__(self) -> str:
        return self.name


# Replaced with the commit time (ISO-8601, UTC) when the batch is applied.
SERVER_TIMESTAMP = _Sentinel("SERVER_TIMESTAMP")
# Removes the field from the stored document.
DELETE_FIELD = _Sentinel("DELETE_FIELD")


class ArrayUnion:
    """Add each value to an array field unless already present."""
    __slots__ = ("values",)

    def __init__(self, values: Iterable[Any]):
        self.values = list(values)

    def __repr__(self) -> str:
        return f"ArrayUnion({self.values!r})"


class ArrayRemove:
    """Remove every occurrence of each value from an array field."""
    __slots__ = ("values",)

    def __init__(self, values: Iterable[Any]):
        self.values = list(values)

    def __repr__(self) -> str:
        return f"ArrayRemove({self.values!r})"


class DocumentMissing(KeyError):
    """Raised inside a batch when `update` targets a document that does not exist."""


def split_path(path: str) -> Tuple[str, str]:
    """Split a document path into (collection path, document id)."""
    parts = [p for p in path.strip("/").split("/") if p]
    if len(parts) < 2 or len(parts) % 2:
        raise ValueError(f"'{path}' is not a document path")
    return "/".join(parts[:-1]), parts[-1]


@dataclass(frozen=True)
class DocumentSnapshot:
    path: str
    data: Optional[Dict[str, Any]] = None

    @property
    def exists(self) -> bool:
        return self.data is not None

    @property
    def id(self) -> str:
        return split_path(self.path)[1]

    @property
    def collection(self) -> str:
        return split_path(self.path)[0]

    def to_dict(self) -> Optional[Dict[str, Any]]:
        return deepcopy(self.data) if self.data is not None else None

    def get(self, key: str, default: Any = None) -> Any:
        if self.data is None:
            return default
        return self.data.get(key, default)


@dataclass(frozen=True)
class WriteOp:
    kind: str  # "set" | "update" | "delete"
    path: str
    data: Optional[Mapping[str, Any]] = None
    merge: bool = False


@dataclass
class WriteBatch:
    """
    Collects writes that the store applies all together or not at all.
    """
    _ops: List[WriteOp] = field(default_factory=list)

    def set(self, path: str, data: Mapping[str, Any], merge: bool = False) -> "WriteBatch":
        split_path(path)
        self._ops.append(WriteOp("set", path, data, merge))
        return self

    def update(self, path: str, data: Mapping[str, Any]) -> "WriteBatch":
        split_path(path)
        self._ops.append(WriteOp("update", path, data))
        return self

    def delete(self, path: str) -> "WriteBatch":
        split_path(path)
        self._ops.append(WriteOp("delete", path))
        return self

    @property
    def operations(self) -> Tuple[WriteOp, ...]:
        return tuple(self._ops)

    def __len__(self) -> int:
        return len(self._ops)


def _resolve(value: Any, current: Any, now: datetime) -> Any:
    if value is SERVER_TIMESTAMP:
        return now.isoformat()
    if isinstance(value, ArrayUnion):
        base = list(current) if isinstance(current, list) else []
        for v in value.values:
            if v not in base:
                base.append(v)
        return base
    if isinstance(value, ArrayRemove):
        if not isinstance(current, list):
            return []
        return [v for v in current if v not in value.values]
    if isinstance(value, Mapping):
        return {k: _resolve(v, None, now) for k, v in value.items() if v is not DELETE_FIELD}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_resolve(v, None, now) for v in value]
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def _merge_into(target: Dict[str, Any], data: Mapping[str, Any], now: datetime) -> None:
    for key, value in data.items():
        if value is DELETE_FIELD:
            target.pop(key, None)
        elif isinstance(value, Mapping):
            sub = target.get(key)
            if not isinstance(sub, dict):
                sub = {}
            _merge_into(sub, value, now)
            target[key] = sub
        else:
            target[key] = _resolve(value, target.get(key), now)


def _update_into(target: Dict[str, Any], data: Mapping[str, Any], now: datetime) -> None:
    # Keys may be dotted field paths ("notes.abc") addressing nested maps.
    for dotted, value in data.items():
        *parents, leaf = dotted.split(".")
        node = target
        for part in parents:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        if value is DELETE_FIELD:
            node.pop(leaf, None)
        else:
            node[leaf] = _resolve(value, node.get(leaf), now)


def apply_write(existing: Optional[Mapping[str, Any]], op: WriteOp, now: datetime) -> Optional[Dict[str, Any]]:
    """
    Compute the document data that results from applying `op` to `existing`.
    Returns None when the document ends up deleted. Never mutates `existing`.
    """
    if op.kind == "delete":
        return None
    if op.kind == "update":
        if existing is None:
            raise DocumentMissing(f"No document to update: {op.path}")
        result = deepcopy(dict(existing))
        _update_into(result, op.data or {}, now)
        return result
    if op.kind == "set":
        if op.merge and existing is not None:
            result = deepcopy(dict(existing))
        else:
            result = {}
        _merge_into(result, op.data or {}, now)
        return result
    raise ValueError(f"Unknown write kind '{op.kind}'")


Listener = Callable[[Any], Awaitable[None]]


class Subscription:
    """
    Handle returned by the watch_* calls. close() stops delivery; it is
    idempotent and also runs when the handle is used as an async context manager.
    """

    def __init__(self, registry: Dict[str, List[Listener]], key: str, listener: Listener):
        self._registry = registry
        self._key = key
        self._listener = listener
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def close(self) -> None:
        if not self._active:
            return
        self._active = False
        listeners = self._registry.get(self._key)
        if listeners and self._listener in listeners:
            listeners.remove(self._listener)
            if not listeners:
                self._registry.pop(self._key, None)

    async def __aenter__(self) -> "Subscription":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()


class DocumentStore(ABC):
    """
    Document store with atomic batches and change notifications.

    Subclasses implement reads and `_apply_batch`; this class handles the
    convenience writes, subscriptions and fan-out after each commit.
    """

    def __init__(self) -> None:
        self._document_listeners: Dict[str, List[Listener]] = defaultdict(list)
        self._collection_listeners: Dict[str, List[Listener]] = defaultdict(list)

    @abstractmethod
    async def get(self, path: str) -> DocumentSnapshot:
        ...

    @abstractmethod
    async def list_collection(self, path: str) -> List[DocumentSnapshot]:
        ...

    @abstractmethod
    async def _apply_batch(self, batch: WriteBatch) -> Set[str]:
        """Apply every write atomically and return the touched document paths."""

    async def commit(self, batch: WriteBatch) -> None:
        if not len(batch):
            return
        touched = await self._apply_batch(batch)
        await self._notify(touched)

    async def set(self, path: str, data: Mapping[str, Any], merge: bool = False) -> None:
        await self.commit(WriteBatch().set(path, data, merge=merge))

    async def update(self, path: str, data: Mapping[str, Any]) -> None:
        await self.commit(WriteBatch().update(path, data))

    async def delete(self, path: str) -> None:
        await self.commit(WriteBatch().delete(path))

    async def add(self, collection: str, data: Mapping[str, Any]) -> str:
        doc_id = uuid4().hex
        await self.set(f"{collection}/{doc_id}", data)
        return doc_id

    async def watch_document(self, path: str, listener: Listener) -> Subscription:
        split_path(path)
        self._document_listeners[path].append(listener)
        sub = Subscription(self._document_listeners, path, listener)
        try:
            await listener(await self.get(path))
        except Exception:
            sub.close()
            raise
        return sub

    async def watch_collection(self, path: str, listener: Listener) -> Subscription:
        self._collection_listeners[path].append(listener)
        sub = Subscription(self._collection_listeners, path, listener)
        try:
            await listener(await self.list_collection(path))
        except Exception:
            sub.close()
            raise
        return sub

    async def _notify(self, touched: Iterable[str]) -> None:
        collections = {split_path(p)[0] for p in touched}
        for path in sorted(touched):
            listeners = list(self._document_listeners.get(path, ()))
            if not listeners:
                continue
            try:
                snapshot = await self.get(path)
            except StoreUnavailable as e:
                logger.warning("Could not refresh {} for listeners: {}", path, e)
                continue
            for listener in listeners:
                await self._deliver(listener, snapshot, path)
        for collection in sorted(collections):
            listeners = list(self._collection_listeners.get(collection, ()))
            if not listeners:
                continue
            try:
                snapshots = await self.list_collection(collection)
            except StoreUnavailable as e:
                logger.warning("Could not refresh {} for listeners: {}", collection, e)
                continue
            for listener in listeners:
                await self._deliver(listener, snapshots, collection)

    @staticmethod
    async def _deliver(listener: Listener, payload: Any, key: str) -> None:
        try:
            await listener(payload)
        except Exception:
            # The batch is already committed; a broken listener must not fail the writer.
            logger.exception("Listener for {} failed", key)
