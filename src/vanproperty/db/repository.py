"""
Repository Pattern for Data Access

CRUD operations and domain queries for properties, users, watchlists and saved
searches. Every method takes the caller's session; committing is the caller's
job (see session.transactional).
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Type, TypeVar

from sqlalchemy import case, delete, desc, distinct, func, literal_column, or_, select, update
from sqlalchemy.orm import Session

from src.vanproperty.db.exceptions import (
    DuplicateEntryError,
    InvalidSortError,
    NoFieldsToUpdateError,
)
from src.vanproperty.db.models import (
    Neighborhood,
    Property,
    TaxHistory,
    User,
    WatchlistItem,
    SavedSearch,
)
from src.vanproperty.db.utils import (
    days_ago,
    dialect_insert,
    model_to_dict,
    row_to_dict,
    rows_to_dicts,
)
from src.vanproperty.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar('T')


class BaseRepository:
    """
    Base repository with common CRUD operations.

    Generic repository that can be extended for specific models.
    """

    def __init__(self, model: Type[T]):
        """
        Initialize repository with model class.

        Args:
            model: SQLAlchemy model class
        """
        self.model = model
        self.pk = model.__mapper__.primary_key[0]

    def get_by_id(self, session: Session, id_value: Any) -> Optional[T]:
        """
        Get single record by primary key.

        Args:
            session: Database session
            id_value: Primary key value

        Returns:
            Model instance or None
        """
        result = session.get(self.model, id_value)
        logger.debug(
            "repository_get_by_id",
            model=self.model.__name__,
            id=id_value,
            found=result is not None
        )
        return result

    def create(self, session: Session, **kwargs) -> T:
        """
        Create new record.

        Args:
            session: Database session
            **kwargs: Model field values

        Returns:
            Created model instance
        """
        instance = self.model(**kwargs)
        session.add(instance)
        session.flush()
        logger.info("repository_created", model=self.model.__name__, id=getattr(instance, self.pk.key, None))
        return instance

    def update_fields(self, session: Session, id_value: Any, values: Dict[str, Any]) -> int:
        """
        Update columns of one row.

        Args:
            session: Database session
            id_value: Primary key value
            values: Column values (already filtered to updatable fields)

        Returns:
            Number of rows changed (0 when the row does not exist)
        """
        if not values:
            raise NoFieldsToUpdateError()

        if hasattr(self.model, "updated_at"):
            values = {**values, "updated_at": func.now()}

        result = session.execute(
            update(self.model)
            .where(self.pk == id_value)
            .values(**values)
            .execution_options(synchronize_session="fetch")
        )
        logger.info(
            "repository_updated",
            model=self.model.__name__,
            id=id_value,
            changes=result.rowcount
        )
        return result.rowcount

    def delete(self, session: Session, id_value: Any) -> int:
        """
        Delete record (hard delete).

        Args:
            session: Database session
            id_value: Primary key value

        Returns:
            Number of rows deleted
        """
        result = session.execute(delete(self.model).where(self.pk == id_value))
        if result.rowcount == 0:
            logger.warning("repository_delete_not_found", model=self.model.__name__, id=id_value)
        else:
            logger.info("repository_deleted", model=self.model.__name__, id=id_value)
        return result.rowcount

    def count(self, session: Session) -> int:
        """
        Count total records.
        """
        return session.scalar(select(func.count()).select_from(self.model))


def _pick(data: Dict[str, Any], fields) -> Dict[str, Any]:
    """Keep the keys of ``data`` listed in ``fields`` whose value was supplied."""
    return {key: data[key] for key in fields if key in data}


def _pick_updates(model, data: Dict[str, Any], fields) -> Dict[str, Any]:
    """
    Like _pick, but an explicit None for a NOT NULL column is dropped rather
    than written. Columns whose type stores None as a value keep it.
    """
    columns = model.__table__.c
    return {
        key: value
        for key, value in _pick(data, fields).items()
        if value is not None or columns[key].nullable or columns[key].type.should_evaluate_none
    }


# ---------------------------------------------------------------------------
# Properties
# ---------------------------------------------------------------------------

PRICE_PER_SQM = case(
    (
        Property.land_area > 0,
        func.round(Property.current_total_value * literal_column("1.0") / Property.land_area, 2),
    ),
    else_=None,
).label("price_per_sqm")

SORT_COLUMNS = {
    "property_id": Property.property_id,
    "pid": Property.pid,
    "civic_address": Property.civic_address,
    "property_type": Property.property_type,
    "land_area": Property.land_area,
    "current_land_value": Property.current_land_value,
    "current_improvement_value": Property.current_improvement_value,
    "current_total_value": Property.current_total_value,
    "tax_levy": Property.tax_levy,
    "current_year": Property.current_year,
    "neighborhood_name": Neighborhood.neighborhood_name,
    "price_per_sqm": PRICE_PER_SQM,
}
SORT_ORDERS = ("ASC", "DESC")
DEFAULT_SORT_BY = "current_total_value"
DEFAULT_SORT_ORDER = "DESC"
DEFAULT_PAGE_SIZE = 50

PROPERTY_CREATE_FIELDS = (
    "pid", "civic_address", "legal_type", "neighborhood_id", "postal_code",
    "coordinates_lat", "coordinates_lon", "property_type", "zoning_classification",
    "land_area", "current_land_value", "current_improvement_value", "tax_levy",
    "current_year",
)
PROPERTY_UPDATE_FIELDS = (
    "current_land_value", "current_improvement_value", "tax_levy", "current_year",
)


@dataclass
class PropertyFilters:
    """Optional, AND-composed filters for PropertyRepository.search."""
    neighborhood: Optional[str] = None
    property_type: Optional[str] = None
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    search: Optional[str] = None
    sort_by: Optional[str] = None
    sort_order: Optional[str] = None
    limit: Optional[int] = None
    offset: Optional[int] = None


def resolve_sort(sort_by: Optional[str], sort_order: Optional[str]):
    """
    Map caller-supplied sort options onto an ORDER BY clause.

    Only keys of SORT_COLUMNS are accepted; the direction is ASC or DESC in any
    case.

    Raises:
        InvalidSortError: For anything outside the allow-list
    """
    key = sort_by or DEFAULT_SORT_BY
    if key not in SORT_COLUMNS:
        raise InvalidSortError(key, SORT_COLUMNS)

    direction = (sort_order or DEFAULT_SORT_ORDER).upper()
    if direction not in SORT_ORDERS:
        raise InvalidSortError(sort_order, SORT_ORDERS)

    column = SORT_COLUMNS[key]
    return column.desc() if direction == "DESC" else column.asc()


def _property_row(prop: Property, **extra) -> Dict[str, Any]:
    data = model_to_dict(prop)
    data.update(extra)
    return data


class NeighborhoodRepository(BaseRepository):
    """Repository for Neighborhood model."""

    def __init__(self):
        super().__init__(Neighborhood)

    def get_all(self, session: Session) -> List[Neighborhood]:
        query = select(Neighborhood).order_by(Neighborhood.neighborhood_name)
        return session.execute(query).scalars().all()

    def get_by_name(self, session: Session, name: str) -> Optional[Neighborhood]:
        query = select(Neighborhood).where(Neighborhood.neighborhood_name == name)
        return session.execute(query).scalar_one_or_none()

    def get_or_create(self, session: Session, name: str, description: Optional[str] = None) -> Neighborhood:
        neighborhood = self.get_by_name(session, name)
        if neighborhood is None:
            neighborhood = self.create(session, neighborhood_name=name, description=description)
        return neighborhood

    def insert_ignore(self, session: Session, names: List[str]) -> int:
        """
        Insert neighbourhoods by name, skipping names already present.

        Returns:
            Number of new rows
        """
        if not names:
            return 0
        stmt = dialect_insert(session, Neighborhood).values(
            [{"neighborhood_name": name, "description": f"Properties in {name}"} for name in names]
        ).on_conflict_do_nothing(index_elements=["neighborhood_name"])
        result = session.execute(stmt)
        logger.info("neighborhoods_inserted", requested=len(names), inserted=result.rowcount)
        return result.rowcount

    def id_map(self, session: Session) -> Dict[str, int]:
        """Name -> id lookup for every neighbourhood."""
        rows = session.execute(select(Neighborhood.neighborhood_name, Neighborhood.neighborhood_id))
        return {name: neighborhood_id for name, neighborhood_id in rows}


class PropertyRepository(BaseRepository):
    """Repository for Property model with filter, lookup and aggregate queries."""

    def __init__(self):
        super().__init__(Property)

    def _joined(self, *extra_columns):
        return (
            select(Property, Neighborhood.neighborhood_name, *extra_columns)
            .join(Neighborhood, Property.neighborhood_id == Neighborhood.neighborhood_id)
        )

    def search(self, session: Session, filters: PropertyFilters) -> List[Dict[str, Any]]:
        """
        Filter, sort and paginate properties.

        Supplied filters are AND-composed; absent ones are left out of the
        predicate. ``min_value > max_value`` simply matches nothing.

        Args:
            session: Database session
            filters: Filter configuration

        Returns:
            Property dicts with neighborhood_name and price_per_sqm

        Raises:
            InvalidSortError: sort_by/sort_order outside the allow-list
        """
        query = self._joined(PRICE_PER_SQM)

        if filters.neighborhood:
            query = query.where(Neighborhood.neighborhood_name == filters.neighborhood)

        if filters.property_type:
            query = query.where(Property.property_type == filters.property_type)

        if filters.min_value is not None:
            query = query.where(Property.current_total_value >= filters.min_value)

        if filters.max_value is not None:
            query = query.where(Property.current_total_value <= filters.max_value)

        if filters.search:
            query = query.where(Property.civic_address.icontains(filters.search, autoescape=True))

        query = query.order_by(resolve_sort(filters.sort_by, filters.sort_order), Property.property_id)

        limit = filters.limit if filters.limit is not None else DEFAULT_PAGE_SIZE
        offset = filters.offset or 0
        query = query.limit(limit).offset(offset)

        rows = session.execute(query).all()
        logger.debug(
            "property_search",
            count=len(rows),
            neighborhood=filters.neighborhood,
            property_type=filters.property_type,
            limit=limit,
            offset=offset
        )
        return [
            _property_row(prop, neighborhood_name=name, price_per_sqm=price_per_sqm)
            for prop, name, price_per_sqm in rows
        ]

    def get_detail(self, session: Session, property_id: int) -> Optional[Dict[str, Any]]:
        """Property with neighbourhood name and description."""
        query = self._joined(Neighborhood.description).where(Property.property_id == property_id)
        row = session.execute(query).first()
        if row is None:
            return None
        prop, name, description = row
        return _property_row(prop, neighborhood_name=name, neighborhood_description=description)

    def get_by_pid(self, session: Session, pid: str) -> Optional[Dict[str, Any]]:
        row = session.execute(self._joined().where(Property.pid == pid)).first()
        if row is None:
            return None
        prop, name = row
        return _property_row(prop, neighborhood_name=name)

    def _summary_query(self):
        return (
            select(
                Property.property_id,
                Property.pid,
                Property.civic_address,
                Property.current_total_value,
                Property.property_type,
                Neighborhood.neighborhood_name,
            )
            .join(Neighborhood, Property.neighborhood_id == Neighborhood.neighborhood_id)
        )

    def search_by_address(self, session: Session, term: str, limit: int = 20) -> List[Dict[str, Any]]:
        """Address substring match, alphabetical, at most ``limit`` rows."""
        query = (
            self._summary_query()
            .where(Property.civic_address.icontains(term, autoescape=True))
            .order_by(Property.civic_address)
            .limit(limit)
        )
        return rows_to_dicts(session.execute(query))

    def get_top(self, session: Session, limit: int = 10) -> List[Dict[str, Any]]:
        """Most valuable properties."""
        query = (
            self._summary_query()
            .order_by(Property.current_total_value.desc(), Property.property_id)
            .limit(limit)
        )
        return rows_to_dicts(session.execute(query))

    def get_by_neighborhood(self, session: Session, name: str, limit: int = 100) -> List[Dict[str, Any]]:
        query = (
            self._joined()
            .where(Neighborhood.neighborhood_name == name)
            .order_by(Property.current_total_value.desc(), Property.property_id)
            .limit(limit)
        )
        return [_property_row(prop, neighborhood_name=n) for prop, n in session.execute(query).all()]

    def neighborhood_stats(self, session: Session) -> List[Dict[str, Any]]:
        """
        Per-neighbourhood count, value range and tax revenue.

        Every neighbourhood appears, including ones without properties.
        """
        query = (
            select(
                Neighborhood.neighborhood_name,
                func.count(Property.property_id).label("property_count"),
                func.round(func.avg(Property.current_total_value), 2).label("avg_value"),
                func.round(func.min(Property.current_total_value), 2).label("min_value"),
                func.round(func.max(Property.current_total_value), 2).label("max_value"),
                func.round(func.sum(Property.tax_levy), 2).label("total_tax_revenue"),
            )
            .select_from(Neighborhood)
            .outerjoin(Property, Neighborhood.neighborhood_id == Property.neighborhood_id)
            .group_by(Neighborhood.neighborhood_id, Neighborhood.neighborhood_name)
            .order_by(desc("property_count"), Neighborhood.neighborhood_name)
        )
        return rows_to_dicts(session.execute(query))

    def property_type_stats(self, session: Session) -> List[Dict[str, Any]]:
        """Per-property-type count and value range."""
        query = (
            select(
                Property.property_type,
                func.count().label("count"),
                func.round(func.avg(Property.current_total_value), 2).label("avg_value"),
                func.round(func.min(Property.current_total_value), 2).label("min_value"),
                func.round(func.max(Property.current_total_value), 2).label("max_value"),
            )
            .where(Property.property_type.isnot(None))
            .group_by(Property.property_type)
            .order_by(desc("count"), Property.property_type)
        )
        return rows_to_dicts(session.execute(query))

    def property_types(self, session: Session) -> List[str]:
        query = (
            select(Property.property_type)
            .where(Property.property_type.isnot(None))
            .distinct()
            .order_by(Property.property_type)
        )
        return list(session.execute(query).scalars().all())

    def create_property(self, session: Session, data: Dict[str, Any]) -> int:
        """
        Insert a property.

        Raises:
            DuplicateEntryError: pid already present
        """
        values = _pick(data, PROPERTY_CREATE_FIELDS)
        stmt = (
            dialect_insert(session, Property)
            .values(**values)
            .on_conflict_do_nothing(index_elements=["pid"])
            .returning(Property.property_id)
        )
        property_id = session.execute(stmt).scalar_one_or_none()
        if property_id is None:
            logger.warning("property_create_conflict", pid=values.get("pid"))
            raise DuplicateEntryError("property", "pid")

        logger.info("property_created", property_id=property_id, pid=values.get("pid"))
        return property_id

    def update_valuation(self, session: Session, property_id: int, data: Dict[str, Any]) -> int:
        """Update valuation fields; returns rows changed."""
        return self.update_fields(session, property_id, _pick_updates(Property, data, PROPERTY_UPDATE_FIELDS))

    def insert_ignore(self, session: Session, rows: List[Dict[str, Any]]) -> int:
        """
        Bulk insert properties, skipping pids that already exist.

        Returns:
            Number of new rows
        """
        if not rows:
            return 0
        stmt = dialect_insert(session, Property).values(
            [{field: row.get(field) for field in PROPERTY_CREATE_FIELDS} for row in rows]
        ).on_conflict_do_nothing(index_elements=["pid"])
        result = session.execute(stmt)
        logger.info("properties_bulk_inserted", requested=len(rows), inserted=result.rowcount)
        return result.rowcount

    def id_map(self, session: Session, pids: List[str]) -> Dict[str, int]:
        """pid -> property_id for the given pids."""
        if not pids:
            return {}
        rows = session.execute(
            select(Property.pid, Property.property_id).where(Property.pid.in_(pids))
        )
        return {pid: property_id for pid, property_id in rows}


class TaxHistoryRepository(BaseRepository):
    """Repository for yearly assessment history."""

    def __init__(self):
        super().__init__(TaxHistory)

    def get_for_property(self, session: Session, property_id: int) -> List[Dict[str, Any]]:
        """History rows for one property, newest assessment year first."""
        query = (
            select(TaxHistory)
            .where(TaxHistory.property_id == property_id)
            .order_by(TaxHistory.assessment_year.desc())
        )
        return [model_to_dict(row) for row in session.execute(query).scalars().all()]

    def insert_ignore(self, session: Session, rows: List[Dict[str, Any]]) -> int:
        """Insert history rows, skipping (property, year) pairs already present."""
        if not rows:
            return 0
        stmt = dialect_insert(session, TaxHistory).values(rows).on_conflict_do_nothing(
            index_elements=["property_id", "assessment_year"]
        )
        return session.execute(stmt).rowcount


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------

USER_LIST_COLUMNS = (
    User.user_id,
    User.username,
    User.email,
    User.full_name,
    User.preferred_neighborhoods,
    User.price_range_min,
    User.price_range_max,
    User.account_status,
    User.created_at,
    User.last_login,
)
USER_UPDATE_FIELDS = (
    "full_name", "email", "preferred_neighborhoods",
    "price_range_min", "price_range_max", "account_status",
)


class UserRepository(BaseRepository):
    """Repository for User model."""

    def __init__(self):
        super().__init__(User)

    def get_all(self, session: Session) -> List[Dict[str, Any]]:
        query = select(*USER_LIST_COLUMNS).order_by(User.created_at.desc(), User.user_id.desc())
        return rows_to_dicts(session.execute(query))

    def get_user(self, session: Session, user_id: int) -> Optional[Dict[str, Any]]:
        query = select(*USER_LIST_COLUMNS, User.updated_at).where(User.user_id == user_id)
        return row_to_dict(session.execute(query).first())

    def get_by_username(self, session: Session, username: str) -> Optional[Dict[str, Any]]:
        query = select(*USER_LIST_COLUMNS).where(User.username == username)
        return row_to_dict(session.execute(query).first())

    def get_by_email(self, session: Session, email: str) -> Optional[Dict[str, Any]]:
        query = select(
            User.user_id, User.username, User.email, User.full_name, User.account_status
        ).where(User.email == email)
        return row_to_dict(session.execute(query).first())

    def username_exists(self, session: Session, username: str) -> bool:
        return session.scalar(select(User.user_id).where(User.username == username)) is not None

    def create_user(
        self,
        session: Session,
        username: str,
        email: str,
        full_name: Optional[str],
        account_status: str = "active",
    ) -> int:
        """
        Insert a user in one conditional statement.

        The unique constraints on username and email decide; the existence
        lookups afterwards only choose which conflict to report.

        Raises:
            DuplicateEntryError: field "username" or "email"
        """
        stmt = (
            dialect_insert(session, User)
            .values(
                username=username,
                email=email,
                full_name=full_name,
                account_status=account_status or "active",
            )
            .on_conflict_do_nothing()
            .returning(User.user_id)
        )
        user_id = session.execute(stmt).scalar_one_or_none()
        if user_id is None:
            field = "username" if self.username_exists(session, username) else "email"
            logger.warning("user_create_conflict", field=field)
            raise DuplicateEntryError("user", field)

        logger.info("user_created", user_id=user_id)
        return user_id

    def insert_ignore(self, session: Session, users: List[Dict[str, Any]]) -> int:
        if not users:
            return 0
        stmt = dialect_insert(session, User).values(users).on_conflict_do_nothing()
        return session.execute(stmt).rowcount

    def update_user(self, session: Session, user_id: int, data: Dict[str, Any]) -> int:
        """
        Partial profile update.

        Raises:
            NoFieldsToUpdateError: no updatable field supplied
            DuplicateEntryError: email already used by another user
        """
        values = _pick_updates(User, data, USER_UPDATE_FIELDS)
        email = values.get("email")
        if email is not None:
            owner = session.scalar(select(User.user_id).where(User.email == email))
            if owner is not None and owner != user_id:
                raise DuplicateEntryError("user", "email")
        return self.update_fields(session, user_id, values)

    def touch_last_login(self, session: Session, user_id: int) -> int:
        result = session.execute(
            update(User)
            .where(User.user_id == user_id)
            .values(last_login=func.now())
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount

    def activity_summary(self, session: Session, user_id: int) -> Optional[Dict[str, Any]]:
        """Watchlist and saved-search counts for one user; None if unknown."""
        query = (
            select(
                User.username,
                User.full_name,
                User.account_status,
                User.last_login,
                func.count(distinct(WatchlistItem.watchlist_id)).label("watchlist_count"),
                func.count(distinct(SavedSearch.search_id)).label("saved_searches_count"),
            )
            .select_from(User)
            .outerjoin(WatchlistItem, User.user_id == WatchlistItem.user_id)
            .outerjoin(SavedSearch, User.user_id == SavedSearch.user_id)
            .where(User.user_id == user_id)
            .group_by(User.user_id, User.username, User.full_name, User.account_status, User.last_login)
        )
        return row_to_dict(session.execute(query).first())

    def get_inactive(self, session: Session, days: int = 90) -> List[Dict[str, Any]]:
        """Users who never logged in or whose last login is older than ``days``."""
        cutoff = days_ago(days)
        query = (
            select(
                User.user_id, User.username, User.email, User.full_name,
                User.last_login, User.account_status,
            )
            .where(or_(User.last_login < cutoff, User.last_login.is_(None)))
            .order_by(User.last_login.asc().nulls_first(), User.user_id)
        )
        return rows_to_dicts(session.execute(query))


# ---------------------------------------------------------------------------
# Watchlist
# ---------------------------------------------------------------------------

WATCHLIST_UPDATE_FIELDS = ("notes", "priority", "tags")


class WatchlistRepository(BaseRepository):
    """
    Repository for WatchlistItem model.

    The (user_id, property_id) unique constraint is the only duplicate guard;
    add() never checks first.
    """

    def __init__(self):
        super().__init__(WatchlistItem)

    def get_for_user(self, session: Session, user_id: int) -> List[Dict[str, Any]]:
        """User's watchlist, highest priority first, then newest."""
        query = (
            select(
                WatchlistItem.watchlist_id,
                WatchlistItem.notes,
                WatchlistItem.tags,
                WatchlistItem.priority,
                WatchlistItem.added_at,
                WatchlistItem.updated_at,
                Property.property_id,
                Property.pid,
                Property.civic_address,
                Property.property_type,
                Property.current_total_value,
                Property.current_land_value,
                Property.current_improvement_value,
                Property.tax_levy,
                Neighborhood.neighborhood_name,
            )
            .join(Property, WatchlistItem.property_id == Property.property_id)
            .join(Neighborhood, Property.neighborhood_id == Neighborhood.neighborhood_id)
            .where(WatchlistItem.user_id == user_id)
            .order_by(WatchlistItem.priority.asc(), WatchlistItem.added_at.desc(), WatchlistItem.watchlist_id.desc())
        )
        return rows_to_dicts(session.execute(query))

    def get_item(self, session: Session, watchlist_id: int) -> Optional[Dict[str, Any]]:
        query = (
            select(
                WatchlistItem,
                Property.civic_address,
                Property.current_total_value,
                Neighborhood.neighborhood_name,
            )
            .join(Property, WatchlistItem.property_id == Property.property_id)
            .join(Neighborhood, Property.neighborhood_id == Neighborhood.neighborhood_id)
            .where(WatchlistItem.watchlist_id == watchlist_id)
        )
        row = session.execute(query).first()
        if row is None:
            return None
        item, address, total_value, neighborhood_name = row
        data = model_to_dict(item)
        data.update(
            civic_address=address,
            current_total_value=total_value,
            neighborhood_name=neighborhood_name,
        )
        return data

    def contains(self, session: Session, user_id: int, property_id: int) -> bool:
        query = select(WatchlistItem.watchlist_id).where(
            WatchlistItem.user_id == user_id,
            WatchlistItem.property_id == property_id,
        )
        return session.scalar(query) is not None

    def add(
        self,
        session: Session,
        user_id: int,
        property_id: int,
        notes: Optional[str] = "",
        priority: Optional[int] = 3,
        tags: Any = None,
    ) -> int:
        """
        Add a property to a user's watchlist.

        One INSERT ... ON CONFLICT DO NOTHING; concurrent duplicate adds cannot
        both succeed.

        Returns:
            New watchlist_id

        Raises:
            DuplicateEntryError: pair already present
        """
        stmt = (
            dialect_insert(session, WatchlistItem)
            .values(
                user_id=user_id,
                property_id=property_id,
                notes=notes if notes is not None else "",
                priority=priority if priority is not None else 3,
                tags=tags,
            )
            .on_conflict_do_nothing(index_elements=["user_id", "property_id"])
            .returning(WatchlistItem.watchlist_id)
        )
        watchlist_id = session.execute(stmt).scalar_one_or_none()
        if watchlist_id is None:
            logger.info("watchlist_add_conflict", user_id=user_id, property_id=property_id)
            raise DuplicateEntryError("watchlist", "property_id")

        logger.info("watchlist_item_added", watchlist_id=watchlist_id, user_id=user_id, property_id=property_id)
        return watchlist_id

    def update_item(self, session: Session, watchlist_id: int, data: Dict[str, Any]) -> int:
        return self.update_fields(session, watchlist_id, _pick_updates(WatchlistItem, data, WATCHLIST_UPDATE_FIELDS))

    def remove_property(self, session: Session, user_id: int, property_id: int) -> int:
        result = session.execute(
            delete(WatchlistItem).where(
                WatchlistItem.user_id == user_id,
                WatchlistItem.property_id == property_id,
            )
        )
        return result.rowcount

    def clear(self, session: Session, user_id: int) -> int:
        result = session.execute(delete(WatchlistItem).where(WatchlistItem.user_id == user_id))
        logger.info("watchlist_cleared", user_id=user_id, removed=result.rowcount)
        return result.rowcount

    def stats(self, session: Session, user_id: int) -> Dict[str, Any]:
        query = (
            select(
                func.count().label("total_properties"),
                func.round(func.avg(Property.current_total_value), 2).label("avg_value"),
                func.round(func.min(Property.current_total_value), 2).label("min_value"),
                func.round(func.max(Property.current_total_value), 2).label("max_value"),
                func.count(case((WatchlistItem.priority == 1, 1))).label("high_priority_count"),
                func.count(case((WatchlistItem.priority == 5, 1))).label("low_priority_count"),
            )
            .select_from(WatchlistItem)
            .join(Property, WatchlistItem.property_id == Property.property_id)
            .where(WatchlistItem.user_id == user_id)
        )
        return row_to_dict(session.execute(query).first())

    def by_neighborhood(self, session: Session, user_id: int) -> List[Dict[str, Any]]:
        query = (
            select(
                Neighborhood.neighborhood_name,
                func.count(WatchlistItem.watchlist_id).label("property_count"),
                func.round(func.avg(Property.current_total_value), 2).label("avg_value"),
            )
            .select_from(WatchlistItem)
            .join(Property, WatchlistItem.property_id == Property.property_id)
            .join(Neighborhood, Property.neighborhood_id == Neighborhood.neighborhood_id)
            .where(WatchlistItem.user_id == user_id)
            .group_by(Neighborhood.neighborhood_id, Neighborhood.neighborhood_name)
            .order_by(desc("property_count"), Neighborhood.neighborhood_name)
        )
        return rows_to_dicts(session.execute(query))


# ---------------------------------------------------------------------------
# Saved searches
# ---------------------------------------------------------------------------

SAVED_SEARCH_UPDATE_FIELDS = ("search_name", "search_criteria")


class SavedSearchRepository(BaseRepository):
    """Repository for SavedSearch model."""

    def __init__(self):
        super().__init__(SavedSearch)

    def get_for_user(self, session: Session, user_id: int) -> List[Dict[str, Any]]:
        """Most recently executed first; never-executed searches last, newest first."""
        query = (
            select(
                SavedSearch.search_id,
                SavedSearch.search_name,
                SavedSearch.search_criteria,
                SavedSearch.result_count,
                SavedSearch.last_executed,
                SavedSearch.execution_count,
                SavedSearch.created_at,
                SavedSearch.updated_at,
            )
            .where(SavedSearch.user_id == user_id)
            .order_by(
                SavedSearch.last_executed.desc().nulls_last(),
                SavedSearch.created_at.desc(),
                SavedSearch.search_id.desc(),
            )
        )
        return rows_to_dicts(session.execute(query))

    def get_search(self, session: Session, search_id: int) -> Optional[Dict[str, Any]]:
        row = session.execute(select(SavedSearch).where(SavedSearch.search_id == search_id)).scalar_one_or_none()
        return model_to_dict(row) if row is not None else None

    def create_search(self, session: Session, user_id: int, search_name: str, search_criteria: Any) -> int:
        search = self.create(
            session,
            user_id=user_id,
            search_name=search_name,
            search_criteria=search_criteria,
        )
        return search.search_id

    def update_search(self, session: Session, search_id: int, data: Dict[str, Any]) -> int:
        return self.update_fields(session, search_id, _pick_updates(SavedSearch, data, SAVED_SEARCH_UPDATE_FIELDS))

    def record_execution(self, session: Session, search_id: int, result_count: int) -> int:
        """
        Count one execution of a saved search.

        ``result_count`` is whatever the client observed; it is stored as-is.

        Returns:
            Rows changed (0 when the search does not exist)
        """
        result = session.execute(
            update(SavedSearch)
            .where(SavedSearch.search_id == search_id)
            .values(
                execution_count=SavedSearch.execution_count + 1,
                last_executed=func.now(),
                result_count=result_count,
                updated_at=func.now(),
            )
            .execution_options(synchronize_session="fetch")
        )
        logger.info("saved_search_executed", search_id=search_id, result_count=result_count, changes=result.rowcount)
        return result.rowcount

    def most_used(self, session: Session, user_id: int, limit: int = 5) -> List[Dict[str, Any]]:
        query = (
            select(
                SavedSearch.search_id,
                SavedSearch.search_name,
                SavedSearch.search_criteria,
                SavedSearch.execution_count,
                SavedSearch.last_executed,
            )
            .where(SavedSearch.user_id == user_id)
            .order_by(
                SavedSearch.execution_count.desc(),
                SavedSearch.last_executed.desc().nulls_last(),
                SavedSearch.search_id,
            )
            .limit(limit)
        )
        return rows_to_dicts(session.execute(query))

    def recent(self, session: Session, user_id: int, limit: int = 5) -> List[Dict[str, Any]]:
        query = (
            select(
                SavedSearch.search_id,
                SavedSearch.search_name,
                SavedSearch.search_criteria,
                SavedSearch.result_count,
                SavedSearch.last_executed,
            )
            .where(SavedSearch.user_id == user_id, SavedSearch.last_executed.isnot(None))
            .order_by(SavedSearch.last_executed.desc(), SavedSearch.search_id.desc())
            .limit(limit)
        )
        return rows_to_dicts(session.execute(query))

    def search_by_name(self, session: Session, user_id: int, term: str) -> List[Dict[str, Any]]:
        query = (
            select(
                SavedSearch.search_id,
                SavedSearch.search_name,
                SavedSearch.search_criteria,
                SavedSearch.result_count,
                SavedSearch.last_executed,
            )
            .where(SavedSearch.user_id == user_id, SavedSearch.search_name.icontains(term, autoescape=True))
            .order_by(SavedSearch.search_name)
        )
        return rows_to_dicts(session.execute(query))

    def stats(self, session: Session, user_id: int) -> Dict[str, Any]:
        query = select(
            func.count().label("total_searches"),
            func.count(case((SavedSearch.last_executed.isnot(None), 1))).label("executed_searches"),
            func.count(case((SavedSearch.last_executed.is_(None), 1))).label("unused_searches"),
            func.round(func.avg(SavedSearch.execution_count), 2).label("avg_executions"),
            func.max(SavedSearch.execution_count).label("max_executions"),
        ).where(SavedSearch.user_id == user_id)
        return row_to_dict(session.execute(query).first())
