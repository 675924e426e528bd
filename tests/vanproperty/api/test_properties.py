"""
Tests for the properties endpoints.
"""
from config.settings import settings
from src.vanproperty.db.models import Neighborhood, TaxHistory


class TestListProperties:
    """GET /api/properties"""

    def test_envelope_and_default_order(self, client, sample_data):
        response = client.get("/api/properties")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["count"] == 4
        values = [row["current_total_value"] for row in body["data"]]
        assert values == sorted(values, reverse=True)

    def test_every_filter_applies(self, client, sample_data):
        response = client.get(
            "/api/properties",
            params={
                "neighborhood": "Downtown",
                "property_type": "Strata",
                "min_value": 500000,
                "max_value": 800000,
                "search": "granville",
            },
        )

        data = response.json()["data"]
        assert [row["pid"] for row in data] == ["002-002-001"]
        assert data[0]["neighborhood_name"] == "Downtown"

    def test_limit_and_offset(self, client, sample_data):
        first = client.get("/api/properties", params={"sort_by": "pid", "sort_order": "asc", "limit": 2})
        second = client.get(
            "/api/properties", params={"sort_by": "pid", "sort_order": "asc", "limit": 2, "offset": 2}
        )

        assert [row["pid"] for row in first.json()["data"]] == ["001-001-001", "001-001-002"]
        assert [row["pid"] for row in second.json()["data"]] == ["002-002-001", "002-002-002"]

    def test_zero_limit_uses_default_page_size(self, client, sample_data):
        response = client.get("/api/properties", params={"limit": 0})

        assert response.json()["count"] == 4

    def test_min_above_max_is_empty_not_error(self, client, sample_data):
        response = client.get("/api/properties", params={"min_value": 5000000, "max_value": 1})

        assert response.status_code == 200
        assert response.json()["count"] == 0

    def test_invalid_sort_column_is_bad_request(self, client, sample_data):
        response = client.get("/api/properties", params={"sort_by": "1; DROP TABLE users"})

        assert response.status_code == 400
        assert response.json()["success"] is False
        assert "current_total_value" in response.json()["allowed"]

    def test_invalid_sort_order_is_bad_request(self, client, sample_data):
        response = client.get("/api/properties", params={"sort_order": "RANDOM"})

        assert response.status_code == 400

    def test_non_numeric_bound_is_bad_request(self, client, sample_data):
        response = client.get("/api/properties", params={"min_value": "lots"})

        assert response.status_code == 400
        assert response.json()["success"] is False


class TestPropertyLookups:

    def test_detail_embeds_tax_history(self, client, test_db, sample_data):
        prop = sample_data["properties"][0]
        test_db.add_all([
            TaxHistory(property_id=prop.property_id, assessment_year=2023, total_value=950000),
            TaxHistory(property_id=prop.property_id, assessment_year=2024, total_value=1000000),
        ])
        test_db.commit()

        response = client.get(f"/api/properties/{prop.property_id}")

        data = response.json()["data"]
        assert data["neighborhood_name"] == "Kitsilano"
        assert [h["assessment_year"] for h in data["tax_history"]] == [2024, 2023]

    def test_history_endpoint(self, client, test_db, sample_data):
        prop = sample_data["properties"][1]
        test_db.add(TaxHistory(property_id=prop.property_id, assessment_year=2022, total_value=1))
        test_db.commit()

        response = client.get(f"/api/properties/{prop.property_id}/history")

        assert response.json()["count"] == 1

    def test_detail_not_found(self, client, sample_data):
        response = client.get("/api/properties/9999")

        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "Property not found"}

    def test_by_pid(self, client, sample_data):
        response = client.get("/api/properties/pid/002-002-002")

        assert response.json()["data"]["civic_address"] == "1000 ROBSON ST"

    def test_by_pid_not_found(self, client, sample_data):
        assert client.get("/api/properties/pid/nope").status_code == 404

    def test_search_by_address(self, client, sample_data):
        response = client.get("/api/properties/search/robson")

        assert [row["pid"] for row in response.json()["data"]] == ["002-002-002"]

    def test_by_neighborhood_names_it(self, client, sample_data):
        response = client.get("/api/properties/neighborhood/Kitsilano")

        body = response.json()
        assert body["neighborhood"] == "Kitsilano"
        assert body["count"] == 2

    def test_top_default_and_explicit_limit(self, client, sample_data):
        assert client.get("/api/properties/top").json()["count"] == 4
        top = client.get("/api/properties/top/1").json()
        assert [row["pid"] for row in top["data"]] == ["002-002-002"]

    def test_top_non_positive_limit_uses_default(self, client, sample_data, monkeypatch):
        monkeypatch.setattr(settings, "top_properties_default", 2)

        for path in ("/api/properties/top/0", "/api/properties/top/-1"):
            assert client.get(path).json()["count"] == 2

    def test_neighborhoods_and_types(self, client, sample_data):
        neighborhoods = client.get("/api/properties/neighborhoods").json()
        types = client.get("/api/properties/property-types").json()

        assert [n["neighborhood_name"] for n in neighborhoods["data"]] == ["Downtown", "Empty Area", "Kitsilano"]
        assert types["data"] == ["Land", "Other", "Strata"]


class TestPropertyStatistics:

    def test_neighborhood_stats_match_manual_aggregation(self, client, test_db, make_property):
        """5 properties averaging 1,000,000 and 3 averaging 2,000,000."""
        west = Neighborhood(neighborhood_name="West End")
        kits = Neighborhood(neighborhood_name="Kitsilano")
        test_db.add_all([west, kits])
        test_db.flush()
        for i, land in enumerate([600000, 700000, 800000, 900000, 1000000]):
            make_property(west, f"W-{i}", f"{i} Denman St", land, 200000)
        for i, land in enumerate([1500000, 2000000, 2500000]):
            make_property(kits, f"K-{i}", f"{i} York Ave", land, 0)
        test_db.commit()

        response = client.get("/api/properties/stats/neighborhoods")

        rows = {row["neighborhood_name"]: row for row in response.json()["data"]}
        assert response.json()["count"] == 2
        assert rows["West End"]["property_count"] == 5
        assert rows["West End"]["avg_value"] == 1000000.0
        assert rows["Kitsilano"]["property_count"] == 3
        assert rows["Kitsilano"]["avg_value"] == 2000000.0

    def test_type_stats(self, client, sample_data):
        data = client.get("/api/properties/stats/types").json()["data"]

        assert data[0]["property_type"] == "Strata"
        assert data[0]["count"] == 2


class TestPropertyWrites:

    def test_create_requires_fields(self, client, sample_data):
        response = client.post("/api/properties", json={"pid": "X-1"})

        assert response.status_code == 400
        assert response.json()["message"] == "Missing required fields: pid, civic_address, neighborhood_id"

    def test_create_and_read_back(self, client, sample_data):
        kits = sample_data["neighborhoods"]["Kitsilano"]
        payload = {
            "pid": "003-003-003",
            "civic_address": "12 Arbutus St",
            "neighborhood_id": kits.neighborhood_id,
            "current_land_value": 900000,
            "current_improvement_value": 100000,
        }

        response = client.post("/api/properties", json=payload)

        assert response.status_code == 201
        property_id = response.json()["data"]["property_id"]
        detail = client.get(f"/api/properties/{property_id}").json()["data"]
        assert detail["current_total_value"] == 1000000

    def test_create_duplicate_pid_conflicts(self, client, sample_data):
        kits = sample_data["neighborhoods"]["Kitsilano"]
        payload = {"pid": "001-001-001", "civic_address": "dup", "neighborhood_id": kits.neighborhood_id}

        assert client.post("/api/properties", json=payload).status_code == 409

    def test_update_valuation(self, client, sample_data):
        prop = sample_data["properties"][2]

        response = client.put(f"/api/properties/{prop.property_id}", json={"tax_levy": 2500})

        assert response.json()["changes"] == 1
        detail = client.get(f"/api/properties/{prop.property_id}").json()["data"]
        assert detail["tax_levy"] == 2500

    def test_update_missing_property(self, client, sample_data):
        response = client.put("/api/properties/9999", json={"tax_levy": 1})

        assert response.status_code == 404
        assert response.json()["message"] == "Property not found or no changes made"

    def test_update_with_no_fields(self, client, sample_data):
        prop = sample_data["properties"][0]

        response = client.put(f"/api/properties/{prop.property_id}", json={})

        assert response.status_code == 400
        assert response.json()["message"] == "No fields to update"

    def test_delete_twice(self, client, sample_data):
        prop = sample_data["properties"][3]

        assert client.delete(f"/api/properties/{prop.property_id}").status_code == 200
        assert client.delete(f"/api/properties/{prop.property_id}").status_code == 404
