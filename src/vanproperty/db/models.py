"""
SQLAlchemy ORM Models

Vancouver property tax records plus the per-user watchlist and saved-search
tables. Primary keys keep the ``<entity>_id`` names the API exposes.
"""
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import (
    String, Integer, Numeric, DateTime, Text, Computed,
    ForeignKey, CheckConstraint, UniqueConstraint, Index, func
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.vanproperty.db.base import Base, TimestampMixin, VersionedJSON

# Money columns come back as float; SQLite has no native decimal.
Money = Numeric(14, 2, asdecimal=False)


class Neighborhood(Base, TimestampMixin):
    """Vancouver neighbourhood (local area) referenced by properties."""
    __tablename__ = "neighborhoods"

    neighborhood_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    neighborhood_name: Mapped[str] = mapped_column(
        String(100),
        unique=True,
        nullable=False,
        comment="Neighbourhood code or name from the tax report"
    )
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    properties: Mapped[list["Property"]] = relationship(
        "Property",
        back_populates="neighborhood",
        passive_deletes=True
    )

    __table_args__ = (
        CheckConstraint("length(trim(neighborhood_name)) > 0", name="check_neighborhood_name_not_empty"),
    )

    def __repr__(self) -> str:
        return f"<Neighborhood(id={self.neighborhood_id}, name={self.neighborhood_name})>"


class Property(Base, TimestampMixin):
    """
    One taxable parcel from the property tax report.

    current_total_value is computed by the database from land and improvement
    values so aggregates and sorting never disagree with the parts.
    """
    __tablename__ = "properties"

    property_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    pid: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        nullable=False,
        comment="External parcel identifier (PID)"
    )
    civic_address: Mapped[str] = mapped_column(String(255), nullable=False)
    legal_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    neighborhood_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("neighborhoods.neighborhood_id"),
        nullable=False
    )
    postal_code: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    coordinates_lat: Mapped[Optional[float]] = mapped_column(Numeric(10, 7, asdecimal=False), nullable=True)
    coordinates_lon: Mapped[Optional[float]] = mapped_column(Numeric(10, 7, asdecimal=False), nullable=True)
    property_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    zoning_classification: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    land_area: Mapped[Optional[float]] = mapped_column(Numeric(14, 2, asdecimal=False), nullable=True)

    # Valuation
    current_land_value: Mapped[Optional[float]] = mapped_column(Money, nullable=True, default=0)
    current_improvement_value: Mapped[Optional[float]] = mapped_column(Money, nullable=True, default=0)
    current_total_value: Mapped[Optional[float]] = mapped_column(
        Money,
        Computed(
            "COALESCE(current_land_value, 0) + COALESCE(current_improvement_value, 0)",
            persisted=True
        ),
        comment="Land + improvement value"
    )
    tax_levy: Mapped[Optional[float]] = mapped_column(Money, nullable=True, default=0)
    current_year: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    neighborhood: Mapped["Neighborhood"] = relationship("Neighborhood", back_populates="properties")
    tax_history: Mapped[list["TaxHistory"]] = relationship(
        "TaxHistory",
        back_populates="property",
        order_by="TaxHistory.assessment_year.desc()",
        passive_deletes=True
    )

    __table_args__ = (
        CheckConstraint("current_land_value >= 0", name="check_land_value_non_negative"),
        CheckConstraint("current_improvement_value >= 0", name="check_improvement_value_non_negative"),
        CheckConstraint("tax_levy >= 0", name="check_tax_levy_non_negative"),
        CheckConstraint("land_area IS NULL OR land_area >= 0", name="check_land_area_non_negative"),
        Index("idx_properties_neighborhood_id", "neighborhood_id"),
        Index("idx_properties_property_type", "property_type"),
        Index("idx_properties_civic_address", "civic_address"),
    )

    def __repr__(self) -> str:
        return f"<Property(id={self.property_id}, pid={self.pid}, address={self.civic_address})>"


class TaxHistory(Base):
    """Yearly assessment snapshot for a property."""
    __tablename__ = "tax_history"

    history_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    property_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("properties.property_id", ondelete="CASCADE"),
        nullable=False
    )
    assessment_year: Mapped[int] = mapped_column(Integer, nullable=False)
    land_value: Mapped[Optional[float]] = mapped_column(Money, nullable=True)
    improvement_value: Mapped[Optional[float]] = mapped_column(Money, nullable=True)
    total_value: Mapped[Optional[float]] = mapped_column(Money, nullable=True)
    tax_levy: Mapped[Optional[float]] = mapped_column(Money, nullable=True)
    value_change_percent: Mapped[Optional[float]] = mapped_column(Numeric(8, 2, asdecimal=False), nullable=True)
    value_change_amount: Mapped[Optional[float]] = mapped_column(Money, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )

    property: Mapped["Property"] = relationship("Property", back_populates="tax_history")

    __table_args__ = (
        UniqueConstraint("property_id", "assessment_year", name="uq_tax_history_property_year"),
    )


class User(Base, TimestampMixin):
    """Application user owning watchlist items and saved searches."""
    __tablename__ = "users"

    user_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    full_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    preferred_neighborhoods: Mapped[Optional[Any]] = mapped_column(
        VersionedJSON("preferred_neighborhoods"),
        nullable=True
    )
    price_range_min: Mapped[Optional[float]] = mapped_column(Money, nullable=True)
    price_range_max: Mapped[Optional[float]] = mapped_column(Money, nullable=True)
    account_status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")
    last_login: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<User(id={self.user_id}, username={self.username})>"


class WatchlistItem(Base):
    """A property on a user's watchlist; at most one row per (user, property)."""
    __tablename__ = "watchlist"

    watchlist_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.user_id", ondelete="CASCADE"),
        nullable=False
    )
    property_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("properties.property_id", ondelete="CASCADE"),
        nullable=False
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True, default="")
    priority: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=3,
        comment="1 (highest) to 5 (lowest); not range-checked"
    )
    tags: Mapped[Optional[Any]] = mapped_column(VersionedJSON("tags"), nullable=True)
    added_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False
    )

    property: Mapped["Property"] = relationship("Property")

    __table_args__ = (
        UniqueConstraint("user_id", "property_id", name="uq_watchlist_user_property"),
        Index("idx_watchlist_user_id", "user_id"),
    )


class SavedSearch(Base, TimestampMixin):
    """Named property filter set with caller-reported execution bookkeeping."""
    __tablename__ = "saved_searches"

    search_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.user_id", ondelete="CASCADE"),
        nullable=False
    )
    search_name: Mapped[str] = mapped_column(String(255), nullable=False)
    search_criteria: Mapped[Any] = mapped_column(
        VersionedJSON("search_criteria", none_as_null=False),
        nullable=False
    )
    result_count: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        default=0,
        comment="Result count last reported by the client"
    )
    execution_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_executed: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("idx_saved_searches_user_id", "user_id"),
    )
