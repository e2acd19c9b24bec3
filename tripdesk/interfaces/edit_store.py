# interfaces/edit_store.py
"""
Content Edit Store
Keeps edit previews server-side so apply/reject act on the stored delta,
never on whatever the caller sends back.
"""

from contextlib import contextmanager
from typing import Iterator, Optional, Union

from loguru import logger
from pydantic import ValidationError

from ..errors import EditConflictError
from ..schemas import ContentEdit, ListingType
from .kv_store import KeyValueStore


class EditStore:
    """
    Edits keyed by id with a TTL. Previews that expire are gone for good;
    apply/reject of an expired preview is a 404 at the API layer.
    """

    def __init__(self, store: KeyValueStore, ttl_seconds: int = 3600, lock_ttl_seconds: int = 30):
        self.store = store
        self.ttl_seconds = ttl_seconds
        self.lock_ttl_seconds = lock_ttl_seconds

    @classmethod
    def from_settings(cls, store: KeyValueStore, settings) -> "EditStore":
        return cls(store, ttl_seconds=settings.EDIT_PREVIEW_TTL, lock_ttl_seconds=settings.EDIT_LOCK_TTL)

    def _get_key(self, edit_id: str) -> str:
        return f"edit:{edit_id}"

    def _lock_key(self, edit_id: str) -> str:
        return f"edit:lock:{edit_id}"

    def save(self, edit: ContentEdit) -> ContentEdit:
        """Store or overwrite an edit, restarting its TTL"""
        self.store.set(
            self._get_key(edit.id),
            edit.model_dump(by_alias=True, mode="json"),
            ttl=self.ttl_seconds
        )
        logger.debug(f"Saved edit {edit.id} ({edit.status.value})")
        return edit

    def get(self, edit_id: str) -> Optional[ContentEdit]:
        data = self.store.get(self._get_key(edit_id))
        if data is None:
            return None
        try:
            return ContentEdit.model_validate(data)
        except ValidationError as e:
            logger.error(f"Discarding corrupt edit {edit_id}: {e}")
            self.store.delete(self._get_key(edit_id))
            return None

    def delete(self, edit_id: str) -> bool:
        return self.store.delete(self._get_key(edit_id))

    @contextmanager
    def _hold(self, key: str, busy_message: str) -> Iterator[None]:
        if not self.store.add(key, 1, ttl=self.lock_ttl_seconds):
            raise EditConflictError(busy_message)
        try:
            yield
        finally:
            self.store.delete(key)

    def locked(self, edit_id: str):
        """
        Hold the per-edit lock for the duration of an apply/reject.

        Raises:
            EditConflictError: if another request holds the lock
        """
        return self._hold(self._lock_key(edit_id), f"Edit {edit_id} is already being processed")

    def listing_locked(self, listing_type: Union[ListingType, str], listing_id: str):
        """
        Hold the per-listing lock while a listing is checked and written.
        Every writer of a listing (edit apply, listing update/delete) takes it.

        Raises:
            EditConflictError: if another request is writing the listing
        """
        listing_type = ListingType(listing_type)
        return self._hold(
            f"edit:lock:listing:{listing_type.value}:{listing_id}",
            f"{listing_type.value.capitalize()} {listing_id} is being updated by another request"
        )
