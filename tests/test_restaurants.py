"""
Tests for restaurant profile management and discovery.
"""
from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from restohub.models import Restaurant, Review
from restohub.services.restaurant_service import haversine_km, is_open_now

# Reference points in Paris
LOUVRE = (48.8606, 2.3376)
NOTRE_DAME = (48.8530, 2.3499)
VERSAILLES = (48.8049, 2.1204)


class TestHaversine:
    """Tests for the great-circle distance helper."""

    def test_same_point_is_zero(self):
        assert haversine_km(*LOUVRE, *LOUVRE) == 0

    def test_known_distance(self):
        """Louvre to Notre-Dame is about 1.2 km."""
        assert haversine_km(*LOUVRE, *NOTRE_DAME) == pytest.approx(1.24, abs=0.1)

    def test_symmetric(self):
        assert haversine_km(*LOUVRE, *VERSAILLES) == pytest.approx(haversine_km(*VERSAILLES, *LOUVRE))


class TestIsOpenNow:
    """Tests for is_open_now (weekday keys: "0" = Sunday)."""

    def _restaurant(self, hours, is_open=True, is_active=True) -> Restaurant:
        return Restaurant(opening_hours=hours, is_open=is_open, is_active=is_active)

    def test_open_within_window(self):
        # 2024-03-04 is a Monday -> key "1"
        restaurant = self._restaurant({"1": {"open": 1100, "close": 2200}})

        assert is_open_now(restaurant, datetime(2024, 3, 4, 12, 30)) is True

    def test_closed_outside_window(self):
        restaurant = self._restaurant({"1": {"open": 1100, "close": 2200}})

        assert is_open_now(restaurant, datetime(2024, 3, 4, 22, 1)) is False

    def test_sunday_is_key_zero(self):
        # 2024-03-03 is a Sunday
        restaurant = self._restaurant({"0": {"open": 900, "close": 1400}})

        assert is_open_now(restaurant, datetime(2024, 3, 3, 10, 0)) is True
        assert is_open_now(restaurant, datetime(2024, 3, 4, 10, 0)) is False

    def test_closed_day(self):
        restaurant = self._restaurant({"1": {"open": 900, "close": 2200, "is_closed": True}})

        assert is_open_now(restaurant, datetime(2024, 3, 4, 12, 0)) is False

    def test_flag_off_wins_over_hours(self):
        restaurant = self._restaurant({"1": {"open": 0, "close": 2359}}, is_open=False)

        assert is_open_now(restaurant, datetime(2024, 3, 4, 12, 0)) is False

    def test_no_hours(self):
        assert is_open_now(self._restaurant({}), datetime(2024, 3, 4, 12, 0)) is False


class TestCreateRestaurant:
    """Tests for POST /api/restaurants."""

    payload = {
        "name": "  Le Petit Bistro ",
        "address": "12 rue Oberkampf",
        "city": "Paris",
        "postal_code": "75011",
        "cuisine_type": "French",
        "business_license": "LIC-123",
        "opening_hours": {"1": {"open": 1100, "close": 2300}, "0": {"is_closed": True}},
    }

    def test_create(self, client, owner_headers):
        """Creates the caller's restaurant with defaults filled in."""
        response = client.post("/api/restaurants", json=self.payload, headers=owner_headers)

        assert response.status_code == 201
        data = response.json()
        assert data["name"] == "Le Petit Bistro"
        assert data["owner_id"] == "owner-1"
        assert data["country"] == "France"
        assert data["is_open"] is False
        assert data["business_license"] == "LIC-123"

    def test_second_restaurant_is_409(self, client, owner_headers, restaurant):
        """One owner can only hold one restaurant."""
        response = client.post("/api/restaurants", json=self.payload, headers=owner_headers)

        assert response.status_code == 409
        assert response.json()["error"] == "duplicate_entity"

    def test_invalid_weekday_key(self, client, owner_headers):
        payload = dict(self.payload, opening_hours={"7": {"open": 900, "close": 1800}})

        response = client.post("/api/restaurants", json=payload, headers=owner_headers)

        assert response.status_code == 422

    def test_invalid_minutes(self, client, owner_headers):
        payload = dict(self.payload, opening_hours={"1": {"open": 1175, "close": 1800}})

        response = client.post("/api/restaurants", json=payload, headers=owner_headers)

        assert response.status_code == 422

    def test_requires_identity(self, client):
        response = client.post("/api/restaurants", json=self.payload)

        assert response.status_code == 401


class TestMyRestaurant:
    """Tests for /api/restaurants/me endpoints."""

    def test_get_without_restaurant_is_404(self, client, owner_headers):
        response = client.get("/api/restaurants/me", headers=owner_headers)

        assert response.status_code == 404
        assert response.json()["message"] == "No restaurant found for your account"

    def test_update_only_sent_fields(self, client, owner_headers, restaurant):
        response = client.put(
            "/api/restaurants/me",
            json={"description": "Seasonal cooking", "delivery_fee": "3.50"},
            headers=owner_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["description"] == "Seasonal cooking"
        assert Decimal(data["delivery_fee"]) == Decimal("3.50")
        assert data["city"] == "Paris"

    def test_update_null_required_field_is_422(self, client, owner_headers, restaurant):
        response = client.put("/api/restaurants/me", json={"city": None}, headers=owner_headers)

        assert response.status_code == 422

    def test_toggle_status(self, client, owner_headers, restaurant):
        """Flips is_open each call."""
        first = client.patch("/api/restaurants/me/toggle-status", headers=owner_headers)
        second = client.patch("/api/restaurants/me/toggle-status", headers=owner_headers)

        assert first.json()["is_open"] is False
        assert second.json()["is_open"] is True
        assert second.json()["message"] == "Restaurant is now open"


class TestPublicRestaurant:
    """Tests for GET /api/restaurants/{uuid}."""

    def test_public_view_hides_private_fields(self, client, make_restaurant):
        restaurant = make_restaurant(business_license="SECRET-1")

        response = client.get(f"/api/restaurants/{restaurant.uuid}")

        assert response.status_code == 200
        data = response.json()
        assert "business_license" not in data
        assert "owner_id" not in data
        assert data["is_open_now"] is True

    def test_inactive_restaurant_is_404(self, client, make_restaurant):
        restaurant = make_restaurant(is_active=False)

        response = client.get(f"/api/restaurants/{restaurant.uuid}")

        assert response.status_code == 404

    def test_catalogue_only_shows_orderable_content(self, client, db, restaurant, make_item, make_menu):
        """Unavailable items, hidden or expired menus and hidden reviews are left out."""
        pizza = make_item(restaurant, "Pizza")
        make_item(restaurant, "Old Soup", is_available=False)
        make_menu(restaurant, [pizza], name="Visible")
        make_menu(restaurant, [pizza], name="Hidden", is_available=False)
        make_menu(restaurant, [pizza], name="Expired", valid_until=datetime.now() - timedelta(days=1))
        db.add_all([
            Review(restaurant_id=restaurant.id, customer_id="c1", rating=5, is_visible=True),
            Review(restaurant_id=restaurant.id, customer_id="c2", rating=1, is_visible=False),
        ])
        db.commit()

        data = client.get(f"/api/restaurants/{restaurant.uuid}").json()

        assert [i["name"] for i in data["items"]] == ["Pizza"]
        assert [m["name"] for m in data["menus"]] == ["Visible"]
        assert [r["customer_id"] for r in data["reviews"]] == ["c1"]

    def test_distance_with_coordinates(self, client, make_restaurant):
        restaurant = make_restaurant(latitude=NOTRE_DAME[0], longitude=NOTRE_DAME[1])

        data = client.get(
            f"/api/restaurants/{restaurant.uuid}",
            params={"lat": LOUVRE[0], "lng": LOUVRE[1]},
        ).json()

        assert data["distance"] == pytest.approx(1.24, abs=0.1)


class TestDiscovery:
    """Tests for search, popular and nearby listings."""

    def test_search_filters_and_paginates(self, client, make_restaurant):
        make_restaurant(owner_id="a", name="Sushi Bar", cuisine_type="Japanese", rating=Decimal("4.5"))
        make_restaurant(owner_id="b", name="Pizza Roma", cuisine_type="Italian", rating=Decimal("4.0"))
        make_restaurant(owner_id="c", name="Pizza Napoli", cuisine_type="Italian", rating=Decimal("3.0"))
        make_restaurant(owner_id="d", name="Pizza Closed", cuisine_type="Italian", is_active=False)

        response = client.get("/api/restaurants/search", params={"q": "pizza", "limit": 1})

        assert response.status_code == 200
        data = response.json()
        assert [r["name"] for r in data["restaurants"]] == ["Pizza Roma"]
        assert data["pagination"] == {"current_page": 1, "total_pages": 2, "total_count": 2, "limit": 1}

    def test_search_sort_by_name_asc(self, client, make_restaurant):
        make_restaurant(owner_id="a", name="Zinc")
        make_restaurant(owner_id="b", name="Atelier")

        data = client.get("/api/restaurants/search", params={"sort_by": "name", "sort_order": "asc"}).json()

        assert [r["name"] for r in data["restaurants"]] == ["Atelier", "Zinc"]

    def test_search_unknown_sort_field_is_422(self, client):
        response = client.get("/api/restaurants/search", params={"sort_by": "owner_id"})

        assert response.status_code == 422
        assert response.json()["details"] == {"sort_by": "Cannot sort by 'owner_id'"}

    def test_search_by_radius(self, client, make_restaurant):
        make_restaurant(owner_id="a", name="Near", latitude=NOTRE_DAME[0], longitude=NOTRE_DAME[1])
        make_restaurant(owner_id="b", name="Far", latitude=VERSAILLES[0], longitude=VERSAILLES[1])

        data = client.get(
            "/api/restaurants/search",
            params={"lat": LOUVRE[0], "lng": LOUVRE[1], "radius": 5},
        ).json()

        assert [r["name"] for r in data["restaurants"]] == ["Near"]
        assert data["restaurants"][0]["distance"] is not None

    def test_popular(self, client, make_restaurant):
        make_restaurant(owner_id="a", name="Great", rating=Decimal("4.8"))
        make_restaurant(owner_id="b", name="Good", rating=Decimal("4.1"))
        make_restaurant(owner_id="c", name="Average", rating=Decimal("3.5"))
        make_restaurant(owner_id="d", name="Great But Closed", rating=Decimal("4.9"), is_open=False)

        data = client.get("/api/restaurants/popular").json()

        assert [r["name"] for r in data["restaurants"]] == ["Great", "Good"]

    def test_nearby_sorted_by_distance(self, client, make_restaurant):
        make_restaurant(owner_id="a", name="Further", latitude=48.8738, longitude=2.2950)
        make_restaurant(owner_id="b", name="Closer", latitude=NOTRE_DAME[0], longitude=NOTRE_DAME[1])
        make_restaurant(owner_id="c", name="Versailles", latitude=VERSAILLES[0], longitude=VERSAILLES[1])

        data = client.get("/api/restaurants/nearby", params={"lat": LOUVRE[0], "lng": LOUVRE[1]}).json()

        names = [r["name"] for r in data["restaurants"]]
        assert names == ["Closer", "Further"]
        distances = [r["distance"] for r in data["restaurants"]]
        assert distances == sorted(distances)
