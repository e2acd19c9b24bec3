# api/content_edit.py
"""
AI Content Edit API
Preview -> apply / reject workflow for natural-language listing edits.

POST creates a preview and keeps it in the edit store. PUT acts on the stored
preview only: the delta written on apply is the one computed at preview time.
"""

from fastapi import APIRouter, Depends
from loguru import logger

from ..errors import (
    EditActionNotSupportedError, EditConflictError, EditNotFoundError, ListingNotFoundError
)
from ..interfaces import EditStore, ListingRepository, SearchCache
from ..parsers import propose_edit
from ..schemas import (
    ContentEdit, ContentEditActionRequest, ContentEditRequest, EditAction, EditStatus,
    utc_now_iso
)
from .dependencies import enforce_rate_limit, get_edit_store, get_listing_repository, get_search_cache


router = APIRouter(
    prefix="/api/ai/content-edit",
    tags=["AI Content Edit"],
    dependencies=[Depends(enforce_rate_limit)]
)


def _dump(edit: ContentEdit) -> dict:
    return edit.model_dump(by_alias=True, mode="json", exclude_none=True)


@router.post("")
def create_edit_preview(
    request: ContentEditRequest,
    repository: ListingRepository = Depends(get_listing_repository),
    edit_store: EditStore = Depends(get_edit_store)
):
    """Parse an edit instruction against a stored listing and save the preview"""
    listing = repository.get(request.target_type, request.target_id)
    if listing is None:
        raise ListingNotFoundError()

    edit = propose_edit(
        request.natural_language_command,
        listing.to_record(),
        request.target_type,
        target_id=listing.id,
        created_by=request.user_id
    )
    edit_store.save(edit)

    logger.info(f"Edit preview {edit.id} for {edit.target_type.value} {edit.target_id}: {edit.changed_fields}")

    return {
        "success": True,
        "data": _dump(edit),
        "message": "Preview generated successfully. Review changes before applying."
    }


@router.get("/{edit_id}")
def get_edit(edit_id: str, edit_store: EditStore = Depends(get_edit_store)):
    """Fetch a stored edit (preview, applied or rejected)"""
    edit = edit_store.get(edit_id)
    if edit is None:
        raise EditNotFoundError(f"Edit {edit_id} not found or expired")
    return {"success": True, "data": _dump(edit)}


def _check_request_matches(edit: ContentEdit, request: ContentEditActionRequest):
    """Anything the caller echoes back must agree with the stored preview"""
    if request.target_type is not None and request.target_type != edit.target_type:
        raise EditConflictError(f"Edit {edit.id} targets a {edit.target_type.value}, not a {request.target_type.value}")
    if request.target_id is not None and request.target_id != edit.target_id:
        raise EditConflictError(f"Edit {edit.id} targets {edit.target_id}, not {request.target_id}")
    if request.changed_fields is not None and request.changed_fields != edit.changed_fields:
        raise EditConflictError(f"Changed fields do not match the preview of edit {edit.id}")


def _apply(edit: ContentEdit, repository: ListingRepository) -> dict:
    current = repository.get(edit.target_type, edit.target_id)
    if current is None:
        raise ListingNotFoundError()

    # The listing must still hold the values the preview was computed from
    record = current.to_record()
    stale = [
        field for field in edit.changed_fields
        if record.get(field) != edit.original_content.get(field)
    ]
    if stale:
        raise EditConflictError(
            f"Listing changed since edit {edit.id} was previewed",
            details={"staleFields": stale}
        )

    updated = repository.update(edit.target_type, edit.target_id, edit.changed_fields)
    return {"updatedItem": updated.to_record()}


@router.put("")
def act_on_edit(
    request: ContentEditActionRequest,
    repository: ListingRepository = Depends(get_listing_repository),
    edit_store: EditStore = Depends(get_edit_store),
    search_cache: SearchCache = Depends(get_search_cache)
):
    """Apply or reject a stored preview"""
    if request.action is EditAction.ROLLBACK:
        raise EditActionNotSupportedError(
            "Rollback requires original data. Please implement versioning for full rollback support."
        )

    user_id = request.user_id or "anonymous"

    with edit_store.locked(request.edit_id):
        edit = edit_store.get(request.edit_id)
        if edit is None:
            raise EditNotFoundError(f"Edit {request.edit_id} not found or expired")

        _check_request_matches(edit, request)

        if edit.status is not EditStatus.PREVIEW:
            raise EditConflictError(f"Edit {edit.id} is already {edit.status.value}")

        now = utc_now_iso()

        if request.action is EditAction.APPLY:
            # The stale check and the write must not interleave with another writer
            with edit_store.listing_locked(edit.target_type, edit.target_id):
                result = _apply(edit, repository)
            search_cache.invalidate(edit.target_type.category)
            edit_store.save(edit.model_copy(update={
                "status": EditStatus.APPLIED, "applied_by": user_id, "applied_at": now
            }))
            logger.info(f"Applied edit {edit.id} to {edit.target_type.value} {edit.target_id} by {user_id}")
            return {
                "success": True,
                "message": "Changes applied successfully",
                "data": {
                    "editId": edit.id,
                    "action": "applied",
                    "appliedBy": user_id,
                    "appliedAt": now,
                    **result
                }
            }

        edit_store.save(edit.model_copy(update={
            "status": EditStatus.REJECTED, "rejected_by": user_id, "rejected_at": now
        }))
        logger.info(f"Rejected edit {edit.id} by {user_id}")
        return {
            "success": True,
            "message": "Changes rejected. No modifications made.",
            "data": {
                "editId": edit.id,
                "action": "rejected",
                "rejectedBy": user_id,
                "rejectedAt": now
            }
        }
