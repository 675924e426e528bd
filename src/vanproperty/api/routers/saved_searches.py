"""
Saved Searches Router

Named filter sets. Criteria come back as the structured value they were saved
with; ``/execute`` records the result count the client reports.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from config.settings import settings
from src.vanproperty.api.dependencies import get_db
from src.vanproperty.api.errors import NotFoundError, require_fields
from src.vanproperty.api.responses import changed, created, message, ok
from src.vanproperty.api.schemas import (
    ChangesResponse,
    CreatedResponse,
    MessageResponse,
    SavedSearchCreate,
    SavedSearchUpdate,
    SearchExecution,
)
from src.vanproperty.db.repository import SavedSearchRepository
from src.vanproperty.db.session import transactional

router = APIRouter(prefix="/saved-searches", tags=["saved-searches"])

searches = SavedSearchRepository()


@router.get("/search/{search_id}")
def get_saved_search(search_id: int, db: Session = Depends(get_db)):
    search = searches.get_search(db, search_id)
    if search is None:
        raise NotFoundError("Saved search not found")
    return ok(search)


@router.get("/{user_id}")
def get_user_saved_searches(user_id: int, db: Session = Depends(get_db)):
    return ok(searches.get_for_user(db, user_id))


@router.get("/{user_id}/most-used")
def get_most_used_searches(
    user_id: int,
    limit: int = Query(settings.saved_search_list_default, ge=0),
    db: Session = Depends(get_db),
):
    return ok(searches.most_used(db, user_id, limit or settings.saved_search_list_default))


@router.get("/{user_id}/recent")
def get_recent_searches(
    user_id: int,
    limit: int = Query(settings.saved_search_list_default, ge=0),
    db: Session = Depends(get_db),
):
    """Executed searches only, most recent first."""
    return ok(searches.recent(db, user_id, limit or settings.saved_search_list_default))


@router.get("/{user_id}/search/{term}")
def search_saved_searches(user_id: int, term: str, db: Session = Depends(get_db)):
    return ok(searches.search_by_name(db, user_id, term))


@router.get("/{user_id}/stats")
def get_saved_search_stats(user_id: int, db: Session = Depends(get_db)):
    return ok(searches.stats(db, user_id))


@router.post("", response_model=CreatedResponse, status_code=201)
def create_saved_search(payload: SavedSearchCreate, db: Session = Depends(get_db)):
    require_fields(payload, "user_id", "search_name", "search_criteria")
    with transactional(db):
        search_id = searches.create_search(
            db,
            user_id=payload.user_id,
            search_name=payload.search_name,
            search_criteria=payload.search_criteria,
        )
    return created("Search saved successfully", search_id=search_id)


@router.put("/{search_id}/execute", response_model=MessageResponse)
def record_search_execution(search_id: int, payload: SearchExecution, db: Session = Depends(get_db)):
    """
    Count one execution of a saved search.

    ``result_count`` is stored exactly as reported by the client.
    """
    require_fields(payload, "result_count")
    with transactional(db):
        changes = searches.record_execution(db, search_id, payload.result_count)
    if changes == 0:
        raise NotFoundError("Saved search not found")
    return message("Search execution updated successfully")


@router.put("/{search_id}", response_model=ChangesResponse)
def update_saved_search(search_id: int, payload: SavedSearchUpdate, db: Session = Depends(get_db)):
    with transactional(db):
        changes = searches.update_search(db, search_id, payload.model_dump(exclude_unset=True))
    if changes == 0:
        raise NotFoundError("Saved search not found or no changes made")
    return changed("Saved search updated successfully", changes)


@router.delete("/{search_id}", response_model=MessageResponse)
def delete_saved_search(search_id: int, db: Session = Depends(get_db)):
    with transactional(db):
        deleted = searches.delete(db, search_id)
    if deleted == 0:
        raise NotFoundError("Saved search not found")
    return message("Saved search deleted successfully")
