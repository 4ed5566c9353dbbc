"""Base class for all stores services: storage, change bus and seed fallback."""

from __future__ import annotations

import logging
import uuid
from abc import ABC, abstractmethod
from typing import Callable, Optional, Sequence, TypeVar

from src.models.stores import Record
from src.services.change_bus import Channel, ChangeBus, ChangeEvent
from src.services.errors import CorruptPayloadError, StorageError
from src.services.storage import CollectionStorage, InMemoryStorage

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=Record)


class BaseService(ABC):
    """Owns one or more collections and writes full snapshots through to storage."""

    def __init__(
        self,
        service_name: str,
        channel: Channel,
        storage: Optional[CollectionStorage] = None,
        bus: Optional[ChangeBus] = None,
        use_seed_data: bool = True,
        instance_id: Optional[str] = None,
    ):
        self.service_name = service_name
        self.channel = channel
        self.use_seed_data = use_seed_data
        self.instance_id = instance_id or f"{service_name}-{uuid.uuid4().hex[:8]}"

        # Storage and bus - dependency injection supported
        self.storage = storage if storage is not None else InMemoryStorage()
        self.bus = bus

        if self.bus is not None:
            self.bus.subscribe(channel, self.instance_id, self._on_change)

        logger.info("Service started: %s (%s)", service_name, self.instance_id)

    def _load_collection(
        self, key: str, record_cls: type[R], seed: Callable[[], list[R]]
    ) -> list[R]:
        """Loads a collection; a missing or unreadable payload falls back to the seed data.

        Backend failures (StorageError other than a corrupt payload) propagate.
        """
        try:
            raw = self.storage.load(key)
        except CorruptPayloadError as e:
            logger.warning("Corrupt '%s' payload, using seed data: %s", key, e)
            return self._seed(seed)

        if raw is None:
            return self._seed(seed)

        try:
            return [record_cls.from_dict(r) for r in raw]
        except (TypeError, ValueError, KeyError) as e:
            logger.warning("Incompatible '%s' records, using seed data: %s", key, e)
            return self._seed(seed)

    def _seed(self, seed: Callable[[], list[R]]) -> list[R]:
        return seed() if self.use_seed_data else []

    def _persist(self, collections: dict[str, Sequence[Record]]) -> None:
        """Writes every given collection; raises StorageError before in-memory state is replaced.

        When several collections are written and one fails, the ones already
        written are restored to their previously stored payloads.
        """
        if len(collections) == 1:
            [(key, records)] = collections.items()
            self.storage.save(key, [r.to_dict() for r in records])
            return

        previous = {key: self._stored_payload(key) for key in collections}
        written: list[str] = []
        try:
            for key, records in collections.items():
                self.storage.save(key, [r.to_dict() for r in records])
                written.append(key)
        except StorageError:
            self._restore(written, previous)
            raise

    def _stored_payload(self, key: str) -> Optional[list[dict]]:
        try:
            return self.storage.load(key)
        except CorruptPayloadError:
            # Restored as missing, which loads the same seed fallback
            return None

    def _restore(self, keys: list[str], previous: dict[str, Optional[list[dict]]]) -> None:
        for key in keys:
            try:
                if previous[key] is None:
                    self.storage.delete(key)
                else:
                    self.storage.save(key, previous[key])
                logger.warning("%s rolled back '%s' after a failed write", self.service_name, key)
            except StorageError as e:
                logger.error("%s could not roll back '%s': %s", self.service_name, key, e)

    def _publish(self, action: str, payload: Optional[dict] = None) -> None:
        if self.bus is not None:
            self.bus.publish(self.channel, self.instance_id, action, payload)

    def _on_change(self, event: ChangeEvent) -> None:
        logger.info(
            "%s reloading after '%s' from %s", self.service_name, event.action, event.source
        )
        self.reload()

    def close(self) -> None:
        """Stops listening for change notifications."""
        if self.bus is not None:
            self.bus.unsubscribe(self.instance_id)

    @abstractmethod
    def reload(self) -> None:
        """Re-reads the owned collections from storage."""
        ...
