"""
Tests for the watchlist endpoints.
"""
import pytest


@pytest.fixture
def alice_id(sample_data):
    return sample_data["users"]["alice"].user_id


@pytest.fixture
def property_ids(sample_data):
    return [p.property_id for p in sample_data["properties"]]


def add(client, user_id, property_id, **extra):
    return client.post("/api/watchlist", json={"user_id": user_id, "property_id": property_id, **extra})


class TestWatchlistAdd:
    """POST /api/watchlist"""

    def test_add_returns_created_id(self, client, alice_id, property_ids):
        response = add(client, alice_id, property_ids[0], notes="near the beach", priority=2)

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Property added to watchlist"
        assert body["data"]["watchlist_id"] > 0

    def test_second_add_is_conflict(self, client, alice_id, property_ids):
        add(client, alice_id, property_ids[0])

        response = add(client, alice_id, property_ids[0])

        assert response.status_code == 409
        assert response.json() == {"success": False, "message": "Property already in watchlist"}
        assert client.get(f"/api/watchlist/{alice_id}").json()["count"] == 1

    def test_missing_fields(self, client, alice_id):
        response = client.post("/api/watchlist", json={"user_id": alice_id})

        assert response.status_code == 400
        assert response.json()["message"] == "Missing required fields: user_id, property_id"

    @pytest.mark.parametrize("tags", [["view", "garden"], '["view", "garden"]'])
    def test_tags_structured_or_serialized(self, client, alice_id, property_ids, tags):
        watchlist_id = add(client, alice_id, property_ids[0], tags=tags).json()["data"]["watchlist_id"]

        item = client.get(f"/api/watchlist/item/{watchlist_id}").json()["data"]

        assert item["tags"] == ["view", "garden"]


class TestWatchlistReads:

    def test_list_with_property_details(self, client, alice_id, property_ids):
        add(client, alice_id, property_ids[3], priority=4)
        add(client, alice_id, property_ids[0], priority=1)

        body = client.get(f"/api/watchlist/{alice_id}").json()

        assert body["count"] == 2
        assert [row["priority"] for row in body["data"]] == [1, 4]
        assert body["data"][0]["civic_address"] == "123 W 4TH AVE"

    def test_check(self, client, alice_id, property_ids):
        add(client, alice_id, property_ids[0])

        present = client.get(f"/api/watchlist/check/{alice_id}/{property_ids[0]}").json()
        absent = client.get(f"/api/watchlist/check/{alice_id}/{property_ids[1]}").json()

        assert present == {"success": True, "in_watchlist": True}
        assert absent["in_watchlist"] is False

    def test_item_not_found(self, client, sample_data):
        response = client.get("/api/watchlist/item/999")

        assert response.status_code == 404
        assert response.json()["message"] == "Watchlist item not found"

    def test_stats_and_grouping(self, client, alice_id, property_ids):
        add(client, alice_id, property_ids[0], priority=1)
        add(client, alice_id, property_ids[2], priority=5)

        stats = client.get(f"/api/watchlist/{alice_id}/stats").json()["data"]
        groups = client.get(f"/api/watchlist/{alice_id}/by-neighborhood").json()

        assert stats["total_properties"] == 2
        assert stats["high_priority_count"] == 1
        assert stats["low_priority_count"] == 1
        assert groups["count"] == 2


class TestWatchlistChanges:

    def test_update_item(self, client, alice_id, property_ids):
        watchlist_id = add(client, alice_id, property_ids[0]).json()["data"]["watchlist_id"]

        response = client.put(f"/api/watchlist/{watchlist_id}", json={"notes": "offer soon", "priority": 1})

        assert response.json()["changes"] == 1
        item = client.get(f"/api/watchlist/item/{watchlist_id}").json()["data"]
        assert item["notes"] == "offer soon"
        assert item["priority"] == 1

    def test_null_priority_is_ignored(self, client, alice_id, property_ids):
        watchlist_id = add(client, alice_id, property_ids[0]).json()["data"]["watchlist_id"]

        response = client.put(f"/api/watchlist/{watchlist_id}", json={"notes": "call agent", "priority": None})

        assert response.status_code == 200
        item = client.get(f"/api/watchlist/item/{watchlist_id}").json()["data"]
        assert item["notes"] == "call agent"
        assert item["priority"] == 3

    def test_only_null_priority_is_no_update(self, client, alice_id, property_ids):
        watchlist_id = add(client, alice_id, property_ids[0]).json()["data"]["watchlist_id"]

        response = client.put(f"/api/watchlist/{watchlist_id}", json={"priority": None})

        assert response.status_code == 400
        assert response.json()["message"] == "No fields to update"

    def test_update_missing_item(self, client, sample_data):
        response = client.put("/api/watchlist/999", json={"notes": "x"})

        assert response.status_code == 404

    def test_delete_missing_item_twice_is_404(self, client, sample_data):
        first = client.delete("/api/watchlist/4242")
        second = client.delete("/api/watchlist/4242")

        assert first.status_code == 404
        assert second.status_code == 404
        assert second.json()["message"] == "Watchlist item not found"

    def test_remove_by_property(self, client, alice_id, property_ids):
        add(client, alice_id, property_ids[1])

        removed = client.delete(f"/api/watchlist/{alice_id}/property/{property_ids[1]}")
        again = client.delete(f"/api/watchlist/{alice_id}/property/{property_ids[1]}")

        assert removed.status_code == 200
        assert again.status_code == 404
        assert again.json()["message"] == "Property not found in watchlist"

    def test_remove_then_add_again(self, client, alice_id, property_ids):
        watchlist_id = add(client, alice_id, property_ids[0]).json()["data"]["watchlist_id"]
        client.delete(f"/api/watchlist/{watchlist_id}")

        assert add(client, alice_id, property_ids[0]).status_code == 201

    def test_clear(self, client, alice_id, property_ids):
        for property_id in property_ids[:3]:
            add(client, alice_id, property_id)

        response = client.delete(f"/api/watchlist/{alice_id}/clear")

        assert response.json()["message"] == "Cleared 3 items from watchlist"
        assert client.get(f"/api/watchlist/{alice_id}").json()["count"] == 0
