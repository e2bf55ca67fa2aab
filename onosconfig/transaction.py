"""Store of the configuration transactions, kept as an indexed log."""

from __future__ import annotations

import queue
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from onosconfig.errors import ConfigError, InvalidError, NotFoundError
from onosconfig.model import PathValue
from onosconfig.primitive import Entry, EventStream, EventType, PrimitiveClient

MAP_NAME = "transactions"


@dataclass
class TransactionStatus:
    """The status of a transaction: the start time of each phase it entered."""

    phases: dict[str, datetime] = field(default_factory=dict)


@dataclass
class Transaction:
    """A change spanning one or more targets, or a rollback of an earlier one.

    ``values`` maps each target ID to the path values changed on it.
    """

    id: str = ""
    index: int = 0
    values: dict[str, dict[str, PathValue]] = field(default_factory=dict)
    rollback_index: int = 0
    revision: int = 0
    version: int = 0
    created: datetime | None = None
    updated: datetime | None = None
    status: TransactionStatus = field(default_factory=TransactionStatus)


class TransactionEventType(Enum):
    """The kind of change a transaction event reports."""

    REPLAYED = "replayed"
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


@dataclass
class TransactionEvent:
    """A change made to a stored transaction."""

    type: TransactionEventType
    transaction: Transaction


_EVENT_TYPES = {
    EventType.INSERTED: TransactionEventType.CREATED,
    EventType.UPDATED: TransactionEventType.UPDATED,
    EventType.REMOVED: TransactionEventType.DELETED,
}


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _new_transaction_id() -> str:
    return str(uuid.uuid4())


def _from_entry(entry: Entry) -> Transaction:
    transaction = entry.value
    transaction.index = entry.index
    transaction.version = entry.version
    return transaction


def _propagate(events: EventStream, ch: queue.Queue) -> None:
    for event in events:
        ch.put(TransactionEvent(_EVENT_TYPES[event.type], _from_entry(event.entry)))


def _check_updatable(transaction: Transaction) -> None:
    if transaction.revision == 0:
        raise InvalidError("transaction must contain a revision on update")
    if transaction.version == 0:
        raise InvalidError("transaction must contain a version on update")


class TransactionStore:
    """Transactions kept in a shared indexed map, numbered from 1 in creation order."""

    def __init__(self, client: PrimitiveClient) -> None:
        self._transactions = client.indexed_map(MAP_NAME)

    def __enter__(self) -> TransactionStore:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def get(self, transaction_id: str) -> Transaction:
        """Return the transaction with the given ID."""
        return _from_entry(self._transactions.get(transaction_id))

    def get_by_index(self, index: int) -> Transaction:
        """Return the transaction with the given index."""
        return _from_entry(self._transactions.get_index(index))

    def create(self, transaction: Transaction) -> None:
        """Append a new transaction, setting its ID if empty, index, revision, times and version."""
        if not transaction.id:
            transaction.id = _new_transaction_id()
        if transaction.version != 0:
            raise InvalidError("not a new object")
        if transaction.revision != 0:
            raise InvalidError("not a new object")
        transaction.revision = 1
        transaction.created = _now()
        transaction.updated = _now()
        entry = self._transactions.append(transaction.id, transaction)
        transaction.index = entry.index
        transaction.version = entry.version

    def update(self, transaction: Transaction) -> None:
        """Store a changed transaction, bumping its revision.

        The version acts as an optimistic lock: a stale version raises ConflictError.
        """
        _check_updatable(transaction)
        transaction.revision += 1
        self._write(transaction)

    def update_status(self, transaction: Transaction) -> None:
        """Store a transaction whose status changed; the revision is kept."""
        _check_updatable(transaction)
        self._write(transaction)

    def _write(self, transaction: Transaction) -> None:
        transaction.updated = _now()
        entry = self._transactions.update(
            transaction.id, transaction, if_version=transaction.version
        )
        transaction.index = entry.index
        transaction.version = entry.version

    def list(self) -> list[Transaction]:
        """Return every stored transaction in index order."""
        return [_from_entry(entry) for entry in self._transactions.list()]

    def watch(
        self,
        ch: queue.Queue,
        *,
        transaction_id: str | None = None,
        replay: bool = False,
    ) -> None:
        """Put transaction events on ``ch`` until the store is closed.

        With ``replay`` the stored transactions (or the one with
        ``transaction_id``) are sent first as REPLAYED events.
        """
        events = self._transactions.events(transaction_id or None)
        replayed: list[Entry] = []
        try:
            if replay:
                if transaction_id:
                    try:
                        replayed.append(self._transactions.get(transaction_id))
                    except NotFoundError:
                        pass
                else:
                    replayed = self._transactions.list()
        except ConfigError:
            events.close()
            raise
        for entry in replayed:
            ch.put(TransactionEvent(TransactionEventType.REPLAYED, _from_entry(entry)))
        threading.Thread(target=_propagate, args=(events, ch), daemon=True).start()

    def close(self) -> None:
        """Close the store and end its watches."""
        self._transactions.close()