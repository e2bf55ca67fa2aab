import queue

import pytest

from onosconfig.configuration import (
    Configuration,
    ConfigurationEventType,
    ConfigurationState,
    ConfigurationStore,
    new_id,
)
from onosconfig.errors import (
    AlreadyExistsError,
    ConfigError,
    ConflictError,
    InvalidError,
    NotFoundError,
)
from onosconfig.model import PathValue, TypedValue, ValueType
from onosconfig.primitive import PrimitiveClient


def next_event(ch):
    return ch.get(timeout=5)


def make_config(target, path="/foo", text="Hello world!"):
    return Configuration(
        id=target,
        target_id=target,
        values={"/foo": PathValue(path=path, value=TypedValue(ValueType.STRING, text))},
    )


def test_new_id():
    assert new_id("target-1", "devicesim", "1.0.0") == "target-1-devicesim-1.0.0"


def test_configuration_store():
    client = PrimitiveClient()
    store1 = ConfigurationStore(client)
    store2 = ConfigurationStore(client)

    ch = queue.Queue()
    store2.watch(ch)

    target1_config = make_config("target-1")
    target2_config = make_config("target-2", path="bar", text="Hello world again!")

    store1.create(target1_config)
    assert target1_config.id == "target-1"
    assert target1_config.revision != 0
    assert target1_config.key == "target-1"

    store2.create(target2_config)
    assert target2_config.id == "target-2"
    assert target2_config.revision != 0

    target1_config = store2.get("target-1")
    assert target1_config.id == "target-1"
    assert target1_config.revision != 0
    assert target1_config.values["/foo"].value.value == "Hello world!"

    first = next_event(ch)
    second = next_event(ch)
    assert first.type == ConfigurationEventType.CREATED
    assert {first.configuration.id, second.configuration.id} == {"target-1", "target-2"}

    configuration_ch = queue.Queue()
    store1.watch(configuration_ch, configuration_id=target2_config.id)

    revision = target2_config.revision
    store1.update(target2_config)
    assert target2_config.revision != revision

    event = next_event(configuration_ch)
    assert event.configuration.id == target2_config.id
    assert event.type == ConfigurationEventType.UPDATED

    assert len(store1.list()) == 2

    target2_config = store2.get("target-2")
    target2_config.status.state = ConfigurationState.SYNCHRONIZED
    revision = target2_config.revision
    store1.update(target2_config)
    assert target2_config.revision != revision

    event = next_event(configuration_ch)
    assert event.configuration.id == target2_config.id
    assert event.configuration.status.state == ConfigurationState.SYNCHRONIZED

    config11 = store1.get("target-1")
    config12 = store2.get("target-1")
    config11.status.state = ConfigurationState.SYNCHRONIZED
    store1.update(config11)
    config12.status.state = ConfigurationState.SYNCHRONIZING
    with pytest.raises(ConflictError):
        store2.update(config12)

    for _ in range(3):
        assert next_event(ch).type == ConfigurationEventType.UPDATED

    assert len(store2.list()) == 2

    store1.close()
    store2.close()


@pytest.mark.parametrize(
    "config, message",
    [
        (Configuration(target_id="t"), "no configuration ID specified"),
        (Configuration(id="c"), "no target ID specified"),
        (Configuration(id="c", target_id="t", revision=1), "cannot create configuration with revision"),
        (Configuration(id="c", target_id="t", version=1), "cannot create configuration with version"),
    ],
)
def test_create_validation(config, message):
    store = ConfigurationStore(PrimitiveClient())
    with pytest.raises(InvalidError, match=message):
        store.create(config)


@pytest.mark.parametrize(
    "config, message",
    [
        (Configuration(target_id="t", revision=1, version=1), "no configuration ID specified"),
        (Configuration(id="c", revision=1, version=1), "no target ID specified"),
        (Configuration(id="c", target_id="t", version=1), "must contain a revision"),
        (Configuration(id="c", target_id="t", revision=1), "must contain a version"),
    ],
)
def test_update_validation(config, message):
    store = ConfigurationStore(PrimitiveClient())
    with pytest.raises(InvalidError, match=message):
        store.update(config)
    with pytest.raises(InvalidError, match=message):
        store.update_status(config)


def test_create_duplicate_fails():
    store = ConfigurationStore(PrimitiveClient())
    store.create(make_config("target-1"))
    with pytest.raises(AlreadyExistsError):
        store.create(make_config("target-1"))


def test_get_missing_raises():
    store = ConfigurationStore(PrimitiveClient())
    with pytest.raises(NotFoundError):
        store.get("nothing")


def test_update_status_keeps_revision():
    store = ConfigurationStore(PrimitiveClient())
    config = make_config("target-1")
    store.create(config)
    version = config.version
    store.update_status(config)
    assert config.revision == 1
    assert config.version > version


def test_watch_replay_all():
    store = ConfigurationStore(PrimitiveClient())
    store.create(make_config("target-1"))
    store.create(make_config("target-2"))
    ch = queue.Queue()
    store.watch(ch, replay=True)
    events = [next_event(ch), next_event(ch)]
    assert [e.type for e in events] == [ConfigurationEventType.REPLAYED] * 2
    assert [e.configuration.id for e in events] == ["target-1", "target-2"]
    store.close()


def test_watch_replay_missing_id_then_created():
    store = ConfigurationStore(PrimitiveClient())
    ch = queue.Queue()
    store.watch(ch, configuration_id="target-1", replay=True)
    store.create(make_config("target-2"))
    store.create(make_config("target-1"))
    event = next_event(ch)
    assert event.type == ConfigurationEventType.CREATED
    assert event.configuration.id == "target-1"
    store.close()


def test_closed_store_rejects_calls():
    store = ConfigurationStore(PrimitiveClient())
    store.close()
    with pytest.raises(ConfigError):
        store.list()