"""
Watchlist Router

Per-user tracked properties. A (user, property) pair is either absent or
present; adding a present pair is a conflict and removing an absent one is a
404, however many times it is repeated.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from src.vanproperty.api.dependencies import get_db
from src.vanproperty.api.errors import ConflictError, NotFoundError, require_fields
from src.vanproperty.api.responses import changed, created, message, ok
from src.vanproperty.api.schemas import (
    ChangesResponse,
    CreatedResponse,
    MessageResponse,
    WatchlistCreate,
    WatchlistUpdate,
)
from src.vanproperty.db.exceptions import DuplicateEntryError
from src.vanproperty.db.repository import WatchlistRepository
from src.vanproperty.db.session import transactional

router = APIRouter(prefix="/watchlist", tags=["watchlist"])

watchlist = WatchlistRepository()


@router.get("/item/{watchlist_id}")
def get_watchlist_item(watchlist_id: int, db: Session = Depends(get_db)):
    item = watchlist.get_item(db, watchlist_id)
    if item is None:
        raise NotFoundError("Watchlist item not found")
    return ok(item)


@router.get("/check/{user_id}/{property_id}")
def check_property_in_watchlist(user_id: int, property_id: int, db: Session = Depends(get_db)):
    return {"success": True, "in_watchlist": watchlist.contains(db, user_id, property_id)}


@router.get("/{user_id}")
def get_user_watchlist(user_id: int, db: Session = Depends(get_db)):
    """Watchlist with property details, highest priority first."""
    return ok(watchlist.get_for_user(db, user_id))


@router.get("/{user_id}/stats")
def get_watchlist_stats(user_id: int, db: Session = Depends(get_db)):
    return ok(watchlist.stats(db, user_id))


@router.get("/{user_id}/by-neighborhood")
def get_watchlist_by_neighborhood(user_id: int, db: Session = Depends(get_db)):
    return ok(watchlist.by_neighborhood(db, user_id))


@router.post("", response_model=CreatedResponse, status_code=201)
def add_to_watchlist(payload: WatchlistCreate, db: Session = Depends(get_db)):
    """
    Add a property to a user's watchlist.

    Tags may be a list/object or an already serialized JSON string.
    """
    require_fields(payload, "user_id", "property_id")
    try:
        with transactional(db):
            watchlist_id = watchlist.add(
                db,
                user_id=payload.user_id,
                property_id=payload.property_id,
                notes=payload.notes,
                priority=payload.priority,
                tags=payload.tags,
            )
    except DuplicateEntryError:
        raise ConflictError("Property already in watchlist")
    return created("Property added to watchlist", watchlist_id=watchlist_id)


@router.put("/{watchlist_id}", response_model=ChangesResponse)
def update_watchlist_item(watchlist_id: int, payload: WatchlistUpdate, db: Session = Depends(get_db)):
    with transactional(db):
        changes = watchlist.update_item(db, watchlist_id, payload.model_dump(exclude_unset=True))
    if changes == 0:
        raise NotFoundError("Watchlist item not found or no changes made")
    return changed("Watchlist item updated successfully", changes)


@router.delete("/{user_id}/property/{property_id}", response_model=MessageResponse)
def remove_property_from_watchlist(user_id: int, property_id: int, db: Session = Depends(get_db)):
    with transactional(db):
        removed = watchlist.remove_property(db, user_id, property_id)
    if removed == 0:
        raise NotFoundError("Property not found in watchlist")
    return message("Property removed from watchlist")


@router.delete("/{user_id}/clear", response_model=MessageResponse)
def clear_watchlist(user_id: int, db: Session = Depends(get_db)):
    with transactional(db):
        removed = watchlist.clear(db, user_id)
    return message(f"Cleared {removed} items from watchlist")


@router.delete("/{watchlist_id}", response_model=MessageResponse)
def remove_from_watchlist(watchlist_id: int, db: Session = Depends(get_db)):
    with transactional(db):
        removed = watchlist.delete(db, watchlist_id)
    if removed == 0:
        raise NotFoundError("Watchlist item not found")
    return message("Property removed from watchlist")
