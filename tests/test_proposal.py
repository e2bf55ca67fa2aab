import queue
from datetime import datetime, timezone

import pytest

from onosconfig.errors import (
    AlreadyExistsError,
    ConfigError,
    ConflictError,
    InvalidError,
    NotFoundError,
)
from onosconfig.model import PathValue, TypedValue, ValueType
from onosconfig.primitive import PrimitiveClient
from onosconfig.proposal import Proposal, ProposalEventType, ProposalStore, new_id


def next_event(ch):
    return ch.get(timeout=5)


def make_proposal(target, text="Hello world!"):
    return Proposal(
        id=target,
        target_id=target,
        transaction_index=1,
        values={"/foo": PathValue(value=TypedValue(ValueType.STRING, text))},
    )


def test_new_id():
    assert new_id("target-1", 7) == "target-1-7"


def test_proposal_store():
    client = PrimitiveClient()
    store1 = ProposalStore(client)
    store2 = ProposalStore(client)

    ch = queue.Queue()
    store2.watch(ch)

    target1_config = make_proposal("target-1")
    target2_config = make_proposal("target-2", "Hello world again!")

    store1.create(target1_config)
    assert target1_config.id == "target-1"
    assert target1_config.revision != 0

    store2.create(target2_config)
    assert target2_config.id == "target-2"
    assert target2_config.revision != 0

    target1_config = store2.get("target-1")
    assert target1_config.id == "target-1"
    assert target1_config.revision != 0
    assert target1_config.values["/foo"].value.value == "Hello world!"

    first = next_event(ch)
    second = next_event(ch)
    assert first.type == ProposalEventType.CREATED
    assert {first.proposal.id, second.proposal.id} == {"target-1", "target-2"}

    proposal_ch = queue.Queue()
    store1.watch(proposal_ch, proposal_id=target2_config.id)

    revision = target2_config.revision
    store1.update(target2_config)
    assert target2_config.revision != revision

    event = next_event(proposal_ch)
    assert event.proposal.id == target2_config.id

    assert len(store1.list()) == 2

    target2_config = store2.get("target-2")
    now = datetime.now(timezone.utc)
    target2_config.status.phases["initialize"] = now
    revision = target2_config.revision
    store1.update(target2_config)
    assert target2_config.revision != revision

    event = next_event(proposal_ch)
    assert event.proposal.id == target2_config.id
    assert event.proposal.status.phases["initialize"] == now

    proposal11 = store1.get("target-1")
    proposal12 = store2.get("target-1")
    proposal11.status.phases["initialize"] = now
    store1.update(proposal11)
    proposal12.status.phases["initialize"] = now
    with pytest.raises(ConflictError):
        store2.update(proposal12)

    for _ in range(3):
        assert next_event(ch).type == ProposalEventType.UPDATED

    assert len(store2.list()) == 2

    store1.close()
    store2.close()


@pytest.mark.parametrize(
    "proposal, message",
    [
        (Proposal(target_id="t"), "no proposal ID specified"),
        (Proposal(id="p"), "no target ID specified"),
        (Proposal(id="p", target_id="t", revision=1), "cannot create proposal with revision"),
        (Proposal(id="p", target_id="t", version=1), "cannot create proposal with version"),
    ],
)
def test_create_validation(proposal, message):
    store = ProposalStore(PrimitiveClient())
    with pytest.raises(InvalidError, match=message):
        store.create(proposal)


@pytest.mark.parametrize(
    "proposal, message",
    [
        (Proposal(target_id="t", transaction_index=1, revision=1, version=1), "no proposal ID"),
        (Proposal(id="p", target_id="t", revision=1, version=1), "no transaction index"),
        (Proposal(id="p", transaction_index=1, revision=1, version=1), "no target ID"),
        (Proposal(id="p", target_id="t", transaction_index=1, version=1), "must contain a revision"),
        (Proposal(id="p", target_id="t", transaction_index=1, revision=1), "must contain a version"),
    ],
)
def test_update_validation(proposal, message):
    store = ProposalStore(PrimitiveClient())
    with pytest.raises(InvalidError, match=message):
        store.update(proposal)
    with pytest.raises(InvalidError, match=message):
        store.update_status(proposal)


def test_create_duplicate_fails():
    store = ProposalStore(PrimitiveClient())
    store.create(make_proposal("target-1"))
    with pytest.raises(AlreadyExistsError):
        store.create(make_proposal("target-1"))


def test_get_missing_raises():
    store = ProposalStore(PrimitiveClient())
    with pytest.raises(NotFoundError):
        store.get("nothing")


def test_update_status_keeps_revision():
    store = ProposalStore(PrimitiveClient())
    proposal = make_proposal("target-1")
    store.create(proposal)
    version = proposal.version
    store.update_status(proposal)
    assert proposal.revision == 1
    assert proposal.version > version


def test_watch_replay_by_id():
    store = ProposalStore(PrimitiveClient())
    store.create(make_proposal("target-1"))
    store.create(make_proposal("target-2"))
    ch = queue.Queue()
    store.watch(ch, proposal_id="target-2", replay=True)
    event = next_event(ch)
    assert event.type == ProposalEventType.REPLAYED
    assert event.proposal.id == "target-2"
    assert event.proposal.version != 0
    store.close()


def test_watch_replay_all():
    store = ProposalStore(PrimitiveClient())
    store.create(make_proposal("target-1"))
    store.create(make_proposal("target-2"))
    ch = queue.Queue()
    store.watch(ch, replay=True)
    ids = [next_event(ch).proposal.id, next_event(ch).proposal.id]
    assert ids == ["target-1", "target-2"]
    store.close()


def test_closed_store_rejects_calls():
    store = ProposalStore(PrimitiveClient())
    store.close()
    with pytest.raises(ConfigError):
        store.get("target-1")