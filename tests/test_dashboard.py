"""Tests for the admin dashboard aggregator and its routes."""

from datetime import timedelta

import pytest
import pytest_asyncio

from feastflow.models import Cart, CartItem, Order, OrderStatus, Restaurant, User, UserRole, utcnow
from feastflow.services import dashboard as dashboard_module
from feastflow.services.auth import AuthService
from feastflow.services.dashboard import DashboardService

from tests.conftest import auth_header


def make_user(email, role=UserRole.CUSTOMER):
    return User(email=email, password="x", first_name="F", last_name="L", role=role)


@pytest_asyncio.fixture
async def populated(session):
    """
    Three customers, one owner, two restaurants (one inactive), five orders
    and two carts of which only one has items.
    """
    customers = [make_user(f"c{i}@example.com") for i in range(3)]
    owner = make_user("owner@example.com", UserRole.RESTAURANT_OWNER)
    session.add_all(customers + [owner])
    await session.flush()

    open_restaurant = Restaurant(name="Open", owner_id=owner.id)
    closed_restaurant = Restaurant(name="Closed", owner_id=owner.id, is_active=False)
    session.add_all([open_restaurant, closed_restaurant])
    await session.flush()

    yesterday = utcnow() - timedelta(days=1)
    session.add_all([
        Order(user_id=customers[0].id, restaurant_id=open_restaurant.id,
              status=OrderStatus.DELIVERED, total_amount=20.25),
        Order(user_id=customers[1].id, restaurant_id=open_restaurant.id,
              status=OrderStatus.CONFIRMED, total_amount=10.0),
        Order(user_id=customers[1].id, restaurant_id=open_restaurant.id,
              status=OrderStatus.CANCELLED, total_amount=100.0),
        Order(user_id=customers[2].id, restaurant_id=open_restaurant.id,
              status=OrderStatus.PENDING, total_amount=5.0),
        Order(user_id=customers[2].id, restaurant_id=open_restaurant.id,
              status=OrderStatus.DELIVERED, total_amount=50.0, created_at=yesterday),
    ])

    full_cart = Cart(user_id=customers[0].id, restaurant_id="r1")
    empty_cart = Cart(user_id=customers[1].id)
    session.add_all([full_cart, empty_cart])
    await session.flush()
    session.add_all([
        CartItem(cart_id=full_cart.id, menu_item_id=f"m{i}", menu_item_name="Dish",
                 menu_item_price=3.0, restaurant_id="r1", restaurant_name="R1")
        for i in range(2)
    ])
    await session.commit()


class TestMetrics:

    async def test_aggregates(self, session, populated):
        metrics = await DashboardService(session).get_metrics()

        assert metrics == {
            "totalCustomers": 3,
            "activeRestaurants": 1,
            "totalOrders": 5,
            "todayOrders": 4,
            "todayRevenue": 30.25,
            "avgDeliveryTime": 28,
            "avgRating": 4.6,
            "activeCarts": 1,
        }

    async def test_empty_store(self, session):
        metrics = await DashboardService(session).get_metrics()

        assert metrics["totalCustomers"] == 0
        assert metrics["todayRevenue"] == 0.0
        assert metrics["activeCarts"] == 0


class TestSystemHealth:

    @pytest.mark.parametrize("latency, status, label", [
        (3.4, "HEALTHY", "3ms"),
        (120.0, "DEGRADED", "120ms"),
    ])
    async def test_database_row_reflects_latency(self, session, monkeypatch, latency, status, label):
        async def fake_ping(db):
            return latency

        monkeypatch.setattr(dashboard_module, "ping_db", fake_ping)

        health = await DashboardService(session).get_system_health()

        rows = {row["id"]: row for row in health["services"]}
        assert len(rows) == 6
        assert rows[4]["status"] == status
        assert rows[4]["latency"] == label
        assert rows[1]["name"] == "API Gateway"

    async def test_synthetic_rows_are_not_mutated(self, session):
        await DashboardService(session).get_system_health()

        assert dashboard_module.SYNTHETIC_SERVICES[3]["latency"] == "0ms"


class TestRecentActivity:

    async def test_newest_first_with_user_names(self, session):
        auth = AuthService(session)
        first = await auth.register("a@example.com", "pw", "Ada", "Lovelace")
        await auth.login("a@example.com", "pw")
        await auth.register("b@example.com", "pw", "Bob", "Builder")

        activity = await DashboardService(session).get_recent_activity()

        assert [a["action"] for a in activity] == ["user.register", "user.login", "user.register"]
        assert activity[0]["first_name"] == "Bob"
        assert activity[1]["user_id"] == first.user.id
        assert activity[1]["email"] == "a@example.com"

    async def test_limit_and_offset(self, session):
        auth = AuthService(session)
        for i in range(3):
            await auth.register(f"u{i}@example.com", "pw", "U", str(i))

        page = await DashboardService(session).get_recent_activity(limit=1, offset=1)

        assert len(page) == 1
        assert page[0]["last_name"] == "1"


class TestDashboardRoutes:

    @pytest_asyncio.fixture
    async def admin_headers(self, register_user):
        token, _ = await register_user(role="admin")
        return auth_header(token)

    async def test_metrics(self, client, admin_headers):
        response = await client.get("/api/dashboard/metrics", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert response.json()["data"]["totalCustomers"] == 0

    async def test_health(self, client, admin_headers):
        response = await client.get("/api/dashboard/health", headers=admin_headers)

        assert response.status_code == 200
        assert len(response.json()["data"]["services"]) == 6

    async def test_activity(self, client, admin_headers):
        response = await client.get("/api/dashboard/activity?limit=10", headers=admin_headers)

        assert response.status_code == 200
        entries = response.json()["data"]
        assert entries[0]["action"] == "user.register"

    async def test_activity_limit_out_of_range(self, client, admin_headers):
        response = await client.get("/api/dashboard/activity?limit=0", headers=admin_headers)

        assert response.status_code == 400
