"""
Properties Router

Search, lookup, statistics and valuation endpoints for property records.
Literal paths are registered before ``/{property_id}`` so they are never
captured by it.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from config.settings import settings
from src.vanproperty.api.dependencies import get_db
from src.vanproperty.api.errors import ConflictError, NotFoundError, require_fields
from src.vanproperty.api.responses import changed, created, message, ok
from src.vanproperty.api.schemas import (
    ChangesResponse,
    CreatedResponse,
    MessageResponse,
    NeighborhoodList,
    PropertyCreate,
    PropertyUpdate,
)
from src.vanproperty.db.exceptions import DuplicateEntryError
from src.vanproperty.db.repository import (
    NeighborhoodRepository,
    PropertyFilters,
    PropertyRepository,
    TaxHistoryRepository,
)
from src.vanproperty.db.session import transactional

router = APIRouter(prefix="/properties", tags=["properties"])

properties = PropertyRepository()
neighborhoods = NeighborhoodRepository()
history = TaxHistoryRepository()


@router.get("")
def list_properties(
    neighborhood: Optional[str] = None,
    property_type: Optional[str] = None,
    min_value: Optional[float] = None,
    max_value: Optional[float] = None,
    search: Optional[str] = None,
    sort_by: Optional[str] = None,
    sort_order: Optional[str] = None,
    limit: int = Query(settings.default_page_size, ge=0),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    """
    Filtered, sorted and paginated property list.

    Every supplied filter must hold (AND). ``sort_by`` must be one of the
    sortable columns and ``sort_order`` ASC or DESC, otherwise 400.
    """
    filters = PropertyFilters(
        neighborhood=neighborhood,
        property_type=property_type,
        min_value=min_value,
        max_value=max_value,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
        limit=limit or settings.default_page_size,
        offset=offset,
    )
    return ok(properties.search(db, filters))


@router.get("/neighborhoods", response_model=NeighborhoodList)
def list_neighborhoods(db: Session = Depends(get_db)):
    rows = neighborhoods.get_all(db)
    return {"success": True, "count": len(rows), "data": rows}


@router.get("/property-types")
def list_property_types(db: Session = Depends(get_db)):
    return ok(properties.property_types(db))


@router.get("/stats/neighborhoods")
def neighborhood_statistics(db: Session = Depends(get_db)):
    """Count, average/min/max value and tax revenue per neighbourhood."""
    return ok(properties.neighborhood_stats(db))


@router.get("/stats/types")
def property_type_statistics(db: Session = Depends(get_db)):
    return ok(properties.property_type_stats(db))


@router.get("/top")
@router.get("/top/{limit}")
def top_properties(limit: Optional[int] = None, db: Session = Depends(get_db)):
    """Most valuable properties; a missing or non-positive ``limit`` falls back to the default."""
    if limit is None or limit <= 0:
        limit = settings.top_properties_default
    return ok(properties.get_top(db, limit))


@router.get("/search/{term}")
def search_by_address(term: str, db: Session = Depends(get_db)):
    return ok(properties.search_by_address(db, term))


@router.get("/neighborhood/{name}")
def properties_in_neighborhood(name: str, db: Session = Depends(get_db)):
    return ok(properties.get_by_neighborhood(db, name), neighborhood=name)


@router.get("/pid/{pid}")
def get_property_by_pid(pid: str, db: Session = Depends(get_db)):
    prop = properties.get_by_pid(db, pid)
    if prop is None:
        raise NotFoundError("Property not found")
    return ok(prop)


@router.get("/{property_id}/history")
def get_property_history(property_id: int, db: Session = Depends(get_db)):
    return ok(history.get_for_property(db, property_id))


@router.get("/{property_id}")
def get_property(property_id: int, db: Session = Depends(get_db)):
    """Property detail with its assessment history embedded."""
    prop = properties.get_detail(db, property_id)
    if prop is None:
        raise NotFoundError("Property not found")
    prop["tax_history"] = history.get_for_property(db, property_id)
    return ok(prop)


@router.post("", response_model=CreatedResponse, status_code=201)
def create_property(payload: PropertyCreate, db: Session = Depends(get_db)):
    require_fields(payload, "pid", "civic_address", "neighborhood_id")
    try:
        with transactional(db):
            property_id = properties.create_property(db, payload.model_dump(exclude_unset=True))
    except DuplicateEntryError:
        raise ConflictError("Property with this PID already exists")
    return created("Property created successfully", property_id=property_id)


@router.put("/{property_id}", response_model=ChangesResponse)
def update_property(property_id: int, payload: PropertyUpdate, db: Session = Depends(get_db)):
    with transactional(db):
        changes = properties.update_valuation(db, property_id, payload.model_dump(exclude_unset=True))
    if changes == 0:
        raise NotFoundError("Property not found or no changes made")
    return changed("Property updated successfully", changes)


@router.delete("/{property_id}", response_model=MessageResponse)
def delete_property(property_id: int, db: Session = Depends(get_db)):
    with transactional(db):
        deleted = properties.delete(db, property_id)
    if deleted == 0:
        raise NotFoundError("Property not found")
    return message("Property deleted successfully")
