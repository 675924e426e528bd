"""
Vancouver Data Importer

Loads fetched property tax records into the database: neighbourhoods first,
then properties (skipping pids already present), one assessment history row
per property, and the sample users. Safe to re-run.
"""
import uuid
from dataclasses import dataclass, asdict
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from config.settings import settings
from src.vanproperty.db.repository import (
    NeighborhoodRepository,
    PropertyRepository,
    TaxHistoryRepository,
    UserRepository,
)
from src.vanproperty.utils.logger import get_logger

logger = get_logger(__name__)

UNKNOWN_NEIGHBORHOOD = "Unknown"

DEFAULT_NEIGHBORHOODS = [
    "Downtown",
    "Kitsilano",
    "West End",
    "Mount Pleasant",
    "Fairview",
    "Yaletown",
    "Commercial Drive",
]

SAMPLE_USERS = [
    {"username": "john_buyer", "email": "john@example.com", "full_name": "John Smith", "account_status": "active"},
    {"username": "sarah_investor", "email": "sarah@example.com", "full_name": "Sarah Johnson", "account_status": "active"},
    {"username": "mike_resident", "email": "mike@example.com", "full_name": "Mike Chen", "account_status": "active"},
]

# rows per INSERT; keeps bound parameters under SQLite's per-statement limit
INSERT_CHUNK_SIZE = 50


@dataclass
class ImportSummary:
    """Counts reported at the end of an import run."""
    records_fetched: int = 0
    neighborhoods_inserted: int = 0
    properties_inserted: int = 0
    properties_skipped: int = 0
    tax_history_inserted: int = 0
    users_inserted: int = 0
    used_default_neighborhoods: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _chunks(rows: List[Any], size: int) -> Iterable[List[Any]]:
    for start in range(0, len(rows), size):
        yield rows[start:start + size]


def _to_float(value: Any, default: Optional[float] = 0.0) -> Optional[float]:
    if value in (None, ""):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def neighborhood_name(record: Dict[str, Any]) -> Optional[str]:
    """Neighbourhood code of an upstream record, or None when absent/blank."""
    name = record.get("neighbourhood_code") or record.get("neighborhood_code")
    if name is None:
        return None
    name = str(name).strip()
    return name or None


def extract_neighborhoods(records: Iterable[Dict[str, Any]]) -> List[str]:
    """Distinct neighbourhood names in first-seen order."""
    seen: Dict[str, None] = {}
    for record in records:
        name = neighborhood_name(record)
        if name and name != UNKNOWN_NEIGHBORHOOD:
            seen.setdefault(name, None)
    return list(seen)


def civic_address(record: Dict[str, Any]) -> str:
    if record.get("civic_address"):
        return str(record["civic_address"]).strip()
    parts = [str(record[key]).strip() for key in ("from_civic_number", "street_name") if record.get(key)]
    return " ".join(parts) if parts else "Unknown Address"


def transform_record(
    record: Dict[str, Any],
    neighborhood_ids: Dict[str, int],
    default_year: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Reshape an upstream record into a properties row.

    Records whose neighbourhood is missing or unknown are assigned to the
    ``Unknown`` neighbourhood, which must be present in ``neighborhood_ids``.

    Args:
        record: Raw record from the open data API
        neighborhood_ids: Neighbourhood name -> id
        default_year: Assessment year when the record has none

    Returns:
        Dict of property column values
    """
    name = neighborhood_name(record)
    neighborhood_id = neighborhood_ids.get(name) if name else None
    if neighborhood_id is None:
        neighborhood_id = neighborhood_ids[UNKNOWN_NEIGHBORHOOD]

    geo = record.get("geo_point_2d") or {}
    year = record.get("tax_assessment_year") or record.get("year") or default_year or settings.import_default_year

    return {
        "pid": str(record.get("pid") or f"PID-{uuid.uuid4().hex[:12]}"),
        "civic_address": civic_address(record),
        "legal_type": record.get("legal_type"),
        "neighborhood_id": neighborhood_id,
        "postal_code": record.get("postal_code"),
        "coordinates_lat": _to_float(geo.get("lat"), None),
        "coordinates_lon": _to_float(geo.get("lon"), None),
        "property_type": record.get("legal_type") or "Unknown",
        "zoning_classification": record.get("zoning_district"),
        "land_area": None,
        "current_land_value": _to_float(record.get("current_land_value")),
        "current_improvement_value": _to_float(record.get("current_improvement_value")),
        "tax_levy": _to_float(record.get("tax_levy")),
        "current_year": int(year),
    }


def history_row(property_id: int, row: Dict[str, Any], record: Dict[str, Any]) -> Dict[str, Any]:
    """
    Assessment history entry for an imported property.

    Value change is measured against the record's previous land and
    improvement values when the upstream supplies them.
    """
    total = (row["current_land_value"] or 0) + (row["current_improvement_value"] or 0)
    change_amount = change_percent = None

    previous_land = _to_float(record.get("previous_land_value"), None)
    previous_improvement = _to_float(record.get("previous_improvement_value"), None)
    if previous_land is not None or previous_improvement is not None:
        previous_total = (previous_land or 0) + (previous_improvement or 0)
        change_amount = round(total - previous_total, 2)
        if previous_total > 0:
            change_percent = round(change_amount / previous_total * 100, 2)

    return {
        "property_id": property_id,
        "assessment_year": row["current_year"],
        "land_value": row["current_land_value"],
        "improvement_value": row["current_improvement_value"],
        "total_value": total,
        "tax_levy": row["tax_levy"],
        "value_change_amount": change_amount,
        "value_change_percent": change_percent,
    }


class VancouverImporter:
    """
    Writes fetched records through the repositories.

    Usage:
        with session_scope(factory) as session:
            summary = VancouverImporter(session).run(records)
    """

    def __init__(self, session: Session, default_year: Optional[int] = None):
        self.session = session
        self.default_year = default_year or settings.import_default_year
        self.neighborhoods = NeighborhoodRepository()
        self.properties = PropertyRepository()
        self.history = TaxHistoryRepository()
        self.users = UserRepository()

    def run(self, records: List[Dict[str, Any]]) -> ImportSummary:
        """
        Import records.

        With no records, only the default neighbourhoods and sample users are
        written.

        Args:
            records: Raw upstream records

        Returns:
            ImportSummary
        """
        summary = ImportSummary(records_fetched=len(records))
        logger.info("import_started", records=len(records))

        names = extract_neighborhoods(records)
        if not records:
            names = list(DEFAULT_NEIGHBORHOODS)
            summary.used_default_neighborhoods = True
            logger.info("no_records_using_default_neighborhoods", neighborhoods=len(names))
        elif any(neighborhood_name(r) not in names for r in records):
            names.append(UNKNOWN_NEIGHBORHOOD)

        summary.neighborhoods_inserted = self.neighborhoods.insert_ignore(self.session, names)

        if records:
            self._import_properties(records, summary)

        summary.users_inserted = self.users.insert_ignore(self.session, SAMPLE_USERS)

        logger.info("import_complete", **summary.to_dict())
        return summary

    def _import_properties(self, records: List[Dict[str, Any]], summary: ImportSummary) -> None:
        neighborhood_ids = self.neighborhoods.id_map(self.session)

        rows: Dict[str, Dict[str, Any]] = {}
        sources: Dict[str, Dict[str, Any]] = {}
        for record in records:
            row = transform_record(record, neighborhood_ids, self.default_year)
            if row["pid"] in rows:
                continue
            rows[row["pid"]] = row
            sources[row["pid"]] = record

        existing = set(self._property_ids(list(rows)))
        new_rows = [row for pid, row in rows.items() if pid not in existing]

        for chunk in _chunks(new_rows, INSERT_CHUNK_SIZE):
            summary.properties_inserted += self.properties.insert_ignore(self.session, chunk)
        summary.properties_skipped = len(records) - summary.properties_inserted

        property_ids = self._property_ids([row["pid"] for row in new_rows])
        history = [
            history_row(property_ids[pid], rows[pid], sources[pid])
            for pid in property_ids
        ]
        for chunk in _chunks(history, INSERT_CHUNK_SIZE):
            summary.tax_history_inserted += self.history.insert_ignore(self.session, chunk)

        logger.info(
            "properties_imported",
            inserted=summary.properties_inserted,
            skipped=summary.properties_skipped,
            history_rows=summary.tax_history_inserted
        )

    def _property_ids(self, pids: List[str]) -> Dict[str, int]:
        ids: Dict[str, int] = {}
        for chunk in _chunks(pids, 500):
            ids.update(self.properties.id_map(self.session, chunk))
        return ids
