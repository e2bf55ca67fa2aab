"""Store of the change proposals made to each target."""

from __future__ import annotations

import queue
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from onosconfig.errors import ConfigError, InvalidError, NotFoundError
from onosconfig.model import PathValue
from onosconfig.primitive import Entry, EventStream, EventType, PrimitiveClient

MAP_NAME = "proposals"


def new_id(target_id: str, index: int) -> str:
    """Return the proposal ID for a target and a transaction index."""
    return f"{target_id}-{index}"


@dataclass
class ProposalStatus:
    """The status of a proposal: the start time of each phase it entered."""

    phases: dict[str, datetime] = field(default_factory=dict)


@dataclass
class Proposal:
    """A change to, or a rollback of, one target's configuration."""

    id: str = ""
    target_id: str = ""
    transaction_index: int = 0
    values: dict[str, PathValue] = field(default_factory=dict)
    rollback_index: int = 0
    revision: int = 0
    version: int = 0
    created: datetime | None = None
    updated: datetime | None = None
    status: ProposalStatus = field(default_factory=ProposalStatus)


class ProposalEventType(Enum):
    """The kind of change a proposal event reports."""

    REPLAYED = "replayed"
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


@dataclass
class ProposalEvent:
    """A change made to a stored proposal."""

    type: ProposalEventType
    proposal: Proposal


_EVENT_TYPES = {
    EventType.INSERTED: ProposalEventType.CREATED,
    EventType.UPDATED: ProposalEventType.UPDATED,
    EventType.REMOVED: ProposalEventType.DELETED,
}


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _from_entry(entry: Entry) -> Proposal:
    proposal = entry.value
    proposal.version = entry.version
    return proposal


def _propagate(events: EventStream, ch: queue.Queue) -> None:
    for event in events:
        ch.put(ProposalEvent(_EVENT_TYPES[event.type], _from_entry(event.entry)))


def _check_updatable(proposal: Proposal) -> None:
    if not proposal.id:
        raise InvalidError("no proposal ID specified")
    if proposal.transaction_index == 0:
        raise InvalidError("no transaction index specified")
    if not proposal.target_id:
        raise InvalidError("no target ID specified")
    if proposal.revision == 0:
        raise InvalidError("proposal must contain a revision on update")
    if proposal.version == 0:
        raise InvalidError("proposal must contain a version on update")


class ProposalStore:
    """Proposals kept in a shared map, keyed by proposal ID."""

    def __init__(self, client: PrimitiveClient) -> None:
        self._proposals = client.map(MAP_NAME)

    def __enter__(self) -> ProposalStore:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def get(self, proposal_id: str) -> Proposal:
        """Return the proposal with the given ID."""
        return _from_entry(self._proposals.get(proposal_id))

    def create(self, proposal: Proposal) -> None:
        """Store a new proposal, setting its revision, times and version."""
        if not proposal.id:
            raise InvalidError("no proposal ID specified")
        if not proposal.target_id:
            raise InvalidError("no target ID specified")
        if proposal.revision != 0:
            raise InvalidError("cannot create proposal with revision")
        if proposal.version != 0:
            raise InvalidError("cannot create proposal with version")
        proposal.revision = 1
        proposal.created = _now()
        proposal.updated = _now()
        entry = self._proposals.insert(proposal.id, proposal)
        proposal.version = entry.version

    def update(self, proposal: Proposal) -> None:
        """Store a changed proposal, bumping its revision.

        The version acts as an optimistic lock: a stale version raises ConflictError.
        """
        _check_updatable(proposal)
        proposal.revision += 1
        self._write(proposal)

    def update_status(self, proposal: Proposal) -> None:
        """Store a proposal whose status changed; the revision is kept."""
        _check_updatable(proposal)
        self._write(proposal)

    def _write(self, proposal: Proposal) -> None:
        proposal.updated = _now()
        entry = self._proposals.update(proposal.id, proposal, if_version=proposal.version)
        proposal.version = entry.version

    def list(self) -> list[Proposal]:
        """Return every stored proposal."""
        return [_from_entry(entry) for entry in self._proposals.list()]

    def watch(
        self,
        ch: queue.Queue,
        *,
        proposal_id: str | None = None,
        replay: bool = False,
    ) -> None:
        """Put proposal events on ``ch`` until the store is closed.

        With ``replay`` the stored proposals (or the one with ``proposal_id``)
        are sent first as REPLAYED events.
        """
        events = self._proposals.events(proposal_id or None)
        replayed: list[Entry] = []
        try:
            if replay:
                if proposal_id:
                    try:
                        replayed.append(self._proposals.get(proposal_id))
                    except NotFoundError:
                        pass
                else:
                    replayed = self._proposals.list()
        except ConfigError:
            events.close()
            raise
        for entry in replayed:
            ch.put(ProposalEvent(ProposalEventType.REPLAYED, _from_entry(entry)))
        threading.Thread(target=_propagate, args=(events, ch), daemon=True).start()

    def close(self) -> None:
        """Close the store and end its watches."""
        self._proposals.close()