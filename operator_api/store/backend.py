from __future__ import annotations

import logging

from consistency.dates import local_today
from operator_api.notifications import ChangeHub, get_hub
from operator_api.settings import Settings, get_settings
from operator_api.store.base import RowStore
from operator_api.store.guest import GuestDataset, GuestRowStore
from operator_api.store.keyed import KeyedStore, MemoryKeyedStore, RemoteKeyedStore
from operator_api.store.remote import RemoteRowStore

logger = logging.getLogger(__name__)


class StoreBackend:
    """The row and keyed stores for one process, guest or remote."""

    def __init__(self, guest: bool, keyed: KeyedStore, hub: ChangeHub, dataset: GuestDataset | None = None):
        self.guest = guest
        self.keyed = keyed
        self.hub = hub
        self._dataset = dataset

    def rows(self, user_id: str) -> RowStore:
        if self.guest:
            return GuestRowStore(user_id, self._dataset, self.hub)
        return RemoteRowStore(user_id, hub=self.hub)


def build_backend(settings: Settings | None = None, hub: ChangeHub | None = None) -> StoreBackend:
    settings = settings or get_settings()
    hub = hub or get_hub()
    if settings.guest_mode:
        dataset = GuestDataset(settings.guest_user_id, local_today(settings.timezone_for(settings.guest_user_id)))
        logger.info("Using guest in-memory store")
        return StoreBackend(True, MemoryKeyedStore(settings.guest_storage_path), hub, dataset)
    logger.info("Using remote row store")
    return StoreBackend(False, RemoteKeyedStore(), hub)


_backend: StoreBackend | None = None


def get_backend() -> StoreBackend:
    global _backend
    if _backend is None:
        _backend = build_backend()
    return _backend


def configure_backend(backend: StoreBackend | None) -> None:
    global _backend
    _backend = backend
