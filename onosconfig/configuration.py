"""Store of the configurations intended for each target."""

from __future__ import annotations

import queue
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum, IntEnum

from onosconfig.errors import ConfigError, InvalidError, NotFoundError
from onosconfig.model import PathValue
from onosconfig.primitive import Entry, EventStream, EventType, PrimitiveClient

MAP_NAME = "configurations"


def new_id(target_id: str, target_type: str, target_version: str) -> str:
    """Return the configuration ID for a target, type and version."""
    return f"{target_id}-{target_type}-{target_version}"


class ConfigurationState(IntEnum):
    """How far a configuration has been applied to its target."""

    UNKNOWN = 0
    SYNCHRONIZING = 1
    SYNCHRONIZED = 2
    PERSISTED = 3


@dataclass
class ConfigurationStatus:
    """The status of a configuration."""

    state: ConfigurationState = ConfigurationState.UNKNOWN


@dataclass
class Configuration:
    """The configuration intended for one target."""

    id: str = ""
    target_id: str = ""
    target_type: str = ""
    target_version: str = ""
    values: dict[str, PathValue] = field(default_factory=dict)
    key: str = ""
    revision: int = 0
    version: int = 0
    created: datetime | None = None
    updated: datetime | None = None
    status: ConfigurationStatus = field(default_factory=ConfigurationStatus)


class ConfigurationEventType(Enum):
    """The kind of change a configuration event reports."""

    REPLAYED = "replayed"
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


@dataclass
class ConfigurationEvent:
    """A change made to a stored configuration."""

    type: ConfigurationEventType
    configuration: Configuration


_EVENT_TYPES = {
    EventType.INSERTED: ConfigurationEventType.CREATED,
    EventType.UPDATED: ConfigurationEventType.UPDATED,
    EventType.REMOVED: ConfigurationEventType.DELETED,
}


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _from_entry(entry: Entry) -> Configuration:
    configuration = entry.value
    configuration.version = entry.version
    return configuration


def _propagate(events: EventStream, ch: queue.Queue) -> None:
    for event in events:
        ch.put(ConfigurationEvent(_EVENT_TYPES[event.type], _from_entry(event.entry)))


def _check_identity(configuration: Configuration) -> None:
    if not configuration.id:
        raise InvalidError("no configuration ID specified")
    if not configuration.target_id:
        raise InvalidError("no target ID specified")


def _check_updatable(configuration: Configuration) -> None:
    _check_identity(configuration)
    if configuration.revision == 0:
        raise InvalidError("configuration must contain a revision on update")
    if configuration.version == 0:
        raise InvalidError("configuration must contain a version on update")


class ConfigurationStore:
    """Configurations kept in a shared map, keyed by configuration ID."""

    def __init__(self, client: PrimitiveClient) -> None:
        self._configurations = client.map(MAP_NAME)

    def __enter__(self) -> ConfigurationStore:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def get(self, configuration_id: str) -> Configuration:
        """Return the configuration with the given ID."""
        entry = self._configurations.get(configuration_id)
        configuration = _from_entry(entry)
        configuration.key = str(entry.key)
        return configuration

    def create(self, configuration: Configuration) -> None:
        """Store a new configuration, setting its key, revision, times and version."""
        _check_identity(configuration)
        if configuration.revision != 0:
            raise InvalidError("cannot create configuration with revision")
        if configuration.version != 0:
            raise InvalidError("cannot create configuration with version")
        configuration.key = configuration.id
        configuration.revision = 1
        configuration.created = _now()
        configuration.updated = _now()
        entry = self._configurations.insert(configuration.id, configuration)
        configuration.version = entry.version

    def update(self, configuration: Configuration) -> None:
        """Store a changed configuration, bumping its revision.

        The version acts as an optimistic lock: a stale version raises ConflictError.
        """
        _check_updatable(configuration)
        configuration.revision += 1
        self._write(configuration)

    def update_status(self, configuration: Configuration) -> None:
        """Store a configuration whose status changed; the revision is kept."""
        _check_updatable(configuration)
        self._write(configuration)

    def _write(self, configuration: Configuration) -> None:
        configuration.updated = _now()
        entry = self._configurations.update(
            configuration.id, configuration, if_version=configuration.version
        )
        configuration.version = entry.version

    def list(self) -> list[Configuration]:
        """Return every stored configuration."""
        return [_from_entry(entry) for entry in self._configurations.list()]

    def watch(
        self,
        ch: queue.Queue,
        *,
        configuration_id: str | None = None,
        replay: bool = False,
    ) -> None:
        """Put configuration events on ``ch`` until the store is closed.

        With ``replay`` the stored configurations (or the one with
        ``configuration_id``) are sent first as REPLAYED events.
        """
        events = self._configurations.events(configuration_id or None)
        replayed: list[Entry] = []
        try:
            if replay:
                if configuration_id:
                    try:
                        replayed.append(self._configurations.get(configuration_id))
                    except NotFoundError:
                        pass
                else:
                    replayed = self._configurations.list()
        except ConfigError:
            events.close()
            raise
        for entry in replayed:
            ch.put(ConfigurationEvent(ConfigurationEventType.REPLAYED, _from_entry(entry)))
        threading.Thread(target=_propagate, args=(events, ch), daemon=True).start()

    def close(self) -> None:
        """Close the store and end its watches."""
        self._configurations.close()