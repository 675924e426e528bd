"""
Pydantic Schemas for API Request/Response Models

Request bodies accept every field as optional; handlers run the presence
checks so a missing field yields the 400 envelope rather than a type error.
"""
from typing import Any, Dict, List, Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict


class PropertyCreate(BaseModel):
    """New property record."""
    pid: Optional[str] = None
    civic_address: Optional[str] = None
    legal_type: Optional[str] = None
    neighborhood_id: Optional[int] = None
    postal_code: Optional[str] = None
    coordinates_lat: Optional[float] = None
    coordinates_lon: Optional[float] = None
    property_type: Optional[str] = None
    zoning_classification: Optional[str] = None
    land_area: Optional[float] = None
    current_land_value: Optional[float] = None
    current_improvement_value: Optional[float] = None
    tax_levy: Optional[float] = None
    current_year: Optional[int] = None


class PropertyUpdate(BaseModel):
    """Valuation fields that can change after import."""
    current_land_value: Optional[float] = None
    current_improvement_value: Optional[float] = None
    tax_levy: Optional[float] = None
    current_year: Optional[int] = None


class WatchlistCreate(BaseModel):
    user_id: Optional[int] = None
    property_id: Optional[int] = None
    notes: Optional[str] = None
    priority: Optional[int] = None
    # list/dict or a pre-serialized JSON string
    tags: Optional[Any] = None


class WatchlistUpdate(BaseModel):
    notes: Optional[str] = None
    priority: Optional[int] = None
    tags: Optional[Any] = None


class SavedSearchCreate(BaseModel):
    user_id: Optional[int] = None
    search_name: Optional[str] = None
    search_criteria: Optional[Any] = None


class SavedSearchUpdate(BaseModel):
    search_name: Optional[str] = None
    search_criteria: Optional[Any] = None


class SearchExecution(BaseModel):
    result_count: Optional[int] = None


class UserCreate(BaseModel):
    username: Optional[str] = None
    email: Optional[str] = None
    full_name: Optional[str] = None
    account_status: Optional[str] = None


class UserUpdate(BaseModel):
    full_name: Optional[str] = None
    email: Optional[str] = None
    preferred_neighborhoods: Optional[Any] = None
    price_range_min: Optional[float] = None
    price_range_max: Optional[float] = None
    account_status: Optional[str] = None


class NeighborhoodOut(BaseModel):
    """Neighbourhood row as listed by /properties/neighborhoods."""
    neighborhood_id: int
    neighborhood_name: str
    description: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class NeighborhoodList(BaseModel):
    success: bool = True
    count: int
    data: List[NeighborhoodOut]


class CreatedResponse(BaseModel):
    success: bool = True
    message: str
    data: Dict[str, int]


class ChangesResponse(BaseModel):
    success: bool = True
    message: str
    changes: int


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class StatusResponse(BaseModel):
    success: bool = True
    status: str
    timestamp: datetime
    environment: str
