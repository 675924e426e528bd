"""
Database Package

Models, engine/session construction and repositories.
"""
from src.vanproperty.db.base import Base, VersionedJSON, encode_payload, decode_payload
from src.vanproperty.db.session import (
    create_db_engine,
    create_session_factory,
    transactional,
    session_scope,
    init_db,
    drop_db,
)
from src.vanproperty.db.models import (
    Neighborhood,
    Property,
    TaxHistory,
    User,
    WatchlistItem,
    SavedSearch,
)
from src.vanproperty.db.repository import (
    BaseRepository,
    NeighborhoodRepository,
    PropertyFilters,
    PropertyRepository,
    TaxHistoryRepository,
    UserRepository,
    WatchlistRepository,
    SavedSearchRepository,
)
from src.vanproperty.db.exceptions import (
    RepositoryError,
    DuplicateEntryError,
    PayloadDecodeError,
    InvalidSortError,
    NoFieldsToUpdateError,
)

__all__ = [
    # Base
    "Base",
    "VersionedJSON",
    "encode_payload",
    "decode_payload",
    # Session management
    "create_db_engine",
    "create_session_factory",
    "transactional",
    "session_scope",
    "init_db",
    "drop_db",
    # Models
    "Neighborhood",
    "Property",
    "TaxHistory",
    "User",
    "WatchlistItem",
    "SavedSearch",
    # Repositories
    "BaseRepository",
    "NeighborhoodRepository",
    "PropertyFilters",
    "PropertyRepository",
    "TaxHistoryRepository",
    "UserRepository",
    "WatchlistRepository",
    "SavedSearchRepository",
    # Errors
    "RepositoryError",
    "DuplicateEntryError",
    "PayloadDecodeError",
    "InvalidSortError",
    "NoFieldsToUpdateError",
]
