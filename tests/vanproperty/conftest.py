"""
Shared fixtures: an in-memory database per test, seeded sample data and an API
client wired to the same database.
"""
import pytest
from fastapi.testclient import TestClient

from src.vanproperty.api.main import create_app
from src.vanproperty.db.models import Neighborhood, Property, User
from src.vanproperty.db.session import create_db_engine, create_session_factory, drop_db, init_db


@pytest.fixture(scope="function")
def engine():
    """In-memory SQLite engine with all tables created."""
    engine = create_db_engine("sqlite:///:memory:", echo=False)
    init_db(engine)
    yield engine
    drop_db(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def test_db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    """TestClient for an app using the test database."""
    app = create_app(session_factory=session_factory)
    with TestClient(app) as test_client:
        yield test_client


def add_property(session, neighborhood, pid, address, land, improvement, **extra):
    prop = Property(
        pid=pid,
        civic_address=address,
        neighborhood_id=neighborhood.neighborhood_id,
        current_land_value=land,
        current_improvement_value=improvement,
        current_year=extra.pop("current_year", 2024),
        **extra,
    )
    session.add(prop)
    session.flush()
    return prop


@pytest.fixture
def make_property(test_db):
    """Factory adding a property to the test database."""
    def _make(neighborhood, pid, address, land, improvement, **extra):
        return add_property(test_db, neighborhood, pid, address, land, improvement, **extra)
    return _make


@pytest.fixture
def sample_data(test_db):
    """
    Two populated neighbourhoods, one empty one, four properties and two users.

    Totals: 1,000,000 / 1,500,000 (Kitsilano), 750,000 / 3,000,000 (Downtown).
    """
    kits = Neighborhood(neighborhood_name="Kitsilano", description="Properties in Kitsilano")
    downtown = Neighborhood(neighborhood_name="Downtown", description="Properties in Downtown")
    empty = Neighborhood(neighborhood_name="Empty Area")
    test_db.add_all([kits, downtown, empty])
    test_db.flush()

    p1 = add_property(test_db, kits, "001-001-001", "123 W 4TH AVE", 800000, 200000,
                      property_type="Strata", tax_levy=3000, land_area=400)
    p2 = add_property(test_db, kits, "001-001-002", "456 W 4TH AVE", 1200000, 300000,
                      property_type="Land", tax_levy=4500, land_area=0)
    p3 = add_property(test_db, downtown, "002-002-001", "789 GRANVILLE ST", 500000, 250000,
                      property_type="Strata", tax_levy=2200)
    p4 = add_property(test_db, downtown, "002-002-002", "1000 ROBSON ST", 2000000, 1000000,
                      property_type="Other", tax_levy=9000, land_area=1000)

    alice = User(username="alice", email="a@x.com", full_name="Alice A")
    bob = User(username="bob", email="b@x.com", full_name="Bob B")
    test_db.add_all([alice, bob])
    test_db.commit()

    return {
        "neighborhoods": {"Kitsilano": kits, "Downtown": downtown, "Empty Area": empty},
        "properties": [p1, p2, p3, p4],
        "users": {"alice": alice, "bob": bob},
    }
