"""API endpoint tests."""
import uuid
from datetime import timedelta
from unittest.mock import patch

import pytest
from httpx import AsyncClient
from sqlalchemy.exc import OperationalError

from terra.db.repositories import PropertyViewRepository, storage_errors
from terra.services.clock import utcnow

from conftest import auth


@pytest.mark.asyncio
async def test_health_check(client: AsyncClient):
    """Test health check endpoint."""
    response = await client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_root_endpoint(client: AsyncClient):
    """Test root endpoint."""
    response = await client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Terra Listings"
    assert "version" in data


@pytest.mark.asyncio
class TestIdentity:
    """Tests for caller resolution."""

    async def test_missing_identity(self, client):
        response = await client.get("/api/leads")
        assert response.status_code == 401

    async def test_unknown_identity(self, client):
        response = await client.get("/api/leads", headers={"X-User-Id": str(uuid.uuid4())})
        assert response.status_code == 401

    async def test_malformed_identity(self, client):
        response = await client.get("/api/leads", headers={"X-User-Id": "not-a-uuid"})
        assert response.status_code == 401

    async def test_inactive_user(self, client, make_user):
        user = await make_user(is_active=False)
        response = await client.get("/api/leads", headers=auth(user))
        assert response.status_code == 401

    async def test_buyer_forbidden(self, client, buyer):
        response = await client.get("/api/analytics/overview", headers=auth(buyer))
        assert response.status_code == 403


@pytest.mark.asyncio
class TestPropertiesEndpoints:
    """Tests for listing endpoints."""

    async def test_create_and_browse(self, client, seller):
        response = await client.post("/api/users/properties", headers=auth(seller), json={
            "title": "Riverside Plot",
            "price_kes": "1200000",
            "category": "LAND",
            "location": "Thika",
            "images": ["/uploads/river.jpg"],
            "amenities": ["Water", "Water", "Road"],
            "duration_days": 7
        })
        assert response.status_code == 201
        created = response.json()
        assert created["is_active"] is True
        assert created["duration_days"] == 7
        assert created["amenities"] == ["Water", "Road"]

        browse = await client.get("/api/properties", params={"category": "LAND"})
        assert browse.status_code == 200
        assert [p["id"] for p in browse.json()] == [created["id"]]

        empty = await client.get("/api/properties", params={"category": "HOUSE"})
        assert empty.json() == []

    async def test_create_requires_title_and_price(self, client, seller):
        response = await client.post("/api/users/properties", headers=auth(seller), json={"title": "No price"})
        assert response.status_code == 400

    async def test_buyer_cannot_create(self, client, buyer):
        response = await client.post("/api/users/properties", headers=auth(buyer), json={
            "title": "Plot", "price_kes": "100"
        })
        assert response.status_code == 403

    async def test_inactive_listings_hidden(self, client, seller, make_property):
        await make_property(seller, title="Gone", is_active=False)
        live = await make_property(seller, title="Live")

        response = await client.get("/api/properties")

        assert [p["id"] for p in response.json()] == [str(live.id)]

    async def test_detail_with_visitor_records_view(self, client, seller, make_property):
        prop = await make_property(seller)

        response = await client.get(f"/api/properties/{prop.id}", headers={"X-Visitor-Id": "v-1"})
        assert response.status_code == 200

        stats = await client.get(f"/api/analytics/property/{prop.id}", headers=auth(seller))
        assert stats.json()["total_views"] == 1

    async def test_detail_survives_view_storage_failure(self, client, seller, make_property):
        prop = await make_property(seller, title="Kilimani Flat")

        @storage_errors
        async def failing_add(self, view):
            raise OperationalError("INSERT INTO property_views", {}, Exception("disk full"))

        with patch.object(PropertyViewRepository, "add", failing_add):
            response = await client.get(f"/api/properties/{prop.id}", headers={"X-Visitor-Id": "v-1"})

        assert response.status_code == 200
        assert response.json()["title"] == "Kilimani Flat"
        stats = await client.get(f"/api/analytics/property/{prop.id}", headers=auth(seller))
        assert stats.json()["total_views"] == 0

    async def test_detail_not_found(self, client):
        response = await client.get(f"/api/properties/{uuid.uuid4()}")
        assert response.status_code == 404
        assert response.json()["detail"] == "Property not found"

    async def test_update_by_other_seller_forbidden(self, client, seller, other_seller, make_property):
        prop = await make_property(seller)
        response = await client.put(
            f"/api/users/properties/{prop.id}", headers=auth(other_seller), json={"title": "Mine now"}
        )
        assert response.status_code == 403

    async def test_update_duration_restarts_expiry(self, client, seller, make_property):
        prop = await make_property(seller)
        response = await client.put(
            f"/api/users/properties/{prop.id}", headers=auth(seller), json={"title": "Renamed", "duration_days": 10}
        )
        assert response.status_code == 200
        data = response.json()
        assert data["title"] == "Renamed"
        assert data["duration_days"] == 10

    async def test_delete_property_removes_views_and_detaches_leads(self, client, seller, make_property, make_view):
        prop = await make_property(seller)
        await make_view(prop, visitor_id="v1")
        lead = await client.post("/api/leads", json={"name": "Jane", "email": "j@x.com", "property_id": str(prop.id)})

        response = await client.delete(f"/api/users/properties/{prop.id}", headers=auth(seller))
        assert response.status_code == 200

        overview = await client.get("/api/analytics/overview", headers=auth(seller))
        assert overview.json()["overview"]["total_views"] == 0
        leads = await client.get("/api/leads", headers=auth(seller))
        assert leads.json()[0]["id"] == lead.json()["id"]
        assert leads.json()[0]["property_id"] is None

    async def test_renew_endpoint(self, client, seller, make_property):
        prop = await make_property(seller, is_active=False)
        before = utcnow()

        response = await client.post(
            f"/api/users/properties/{prop.id}/renew", headers=auth(seller), json={"duration_days": 30}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["is_active"] is True
        assert data["duration_days"] == 30
        assert data["expires_at"] >= (before + timedelta(days=30)).isoformat()[:19]


@pytest.mark.asyncio
class TestAnalyticsEndpoints:
    """Tests for tracking and analytics endpoints."""

    async def test_track_view(self, client, seller, make_property):
        prop = await make_property(seller)

        response = await client.post("/api/analytics/track", json={
            "property_id": str(prop.id), "visitor_id": "v-123"
        }, headers={"User-Agent": "pytest-agent"})

        assert response.status_code == 201
        data = response.json()
        assert data["success"] is True
        assert data["view_id"]

    async def test_track_unknown_property(self, client):
        response = await client.post("/api/analytics/track", json={"property_id": str(uuid.uuid4())})
        assert response.status_code == 404

    async def test_overview_scoped(self, client, seller, other_seller, admin, make_property):
        mine = await make_property(seller, title="Mine")
        theirs = await make_property(other_seller, title="Theirs")
        for prop, visitor in [(mine, "a"), (mine, "b"), (theirs, "c")]:
            await client.post("/api/analytics/track", json={"property_id": str(prop.id), "visitor_id": visitor})

        seller_data = (await client.get("/api/analytics/overview", headers=auth(seller))).json()
        admin_data = (await client.get("/api/analytics/overview", headers=auth(admin))).json()

        assert seller_data["overview"]["total_views"] == 2
        assert seller_data["overview"]["today_views"] == 2
        assert seller_data["overview"]["unique_visitors"] == 2
        assert [p["title"] for p in seller_data["top_properties"]] == ["Mine"]
        assert {v["property_title"] for v in seller_data["recent_views"]} == {"Mine"}
        assert admin_data["overview"]["total_views"] == 3
        assert admin_data["overview"]["total_properties"] == 2

    async def test_top_and_recent_limits(self, client, seller, make_property, make_view):
        props = [await make_property(seller, title=f"P{i}") for i in range(3)]
        for count, prop in enumerate(props, start=1):
            for _ in range(count):
                await make_view(prop)

        top = await client.get("/api/analytics/top", params={"limit": 2}, headers=auth(seller))
        recent = await client.get("/api/analytics/recent", params={"limit": 4}, headers=auth(seller))

        assert [p["title"] for p in top.json()] == ["P2", "P1"]
        assert len(recent.json()) == 4

    async def test_property_analytics_forbidden(self, client, seller, other_seller, make_property):
        prop = await make_property(seller)
        response = await client.get(f"/api/analytics/property/{prop.id}", headers=auth(other_seller))
        assert response.status_code == 403

    async def test_property_analytics_breakdown(self, client, seller, make_property):
        prop = await make_property(seller)
        await client.post("/api/analytics/track", json={"property_id": str(prop.id)})

        response = await client.get(f"/api/analytics/property/{prop.id}", headers=auth(seller))

        data = response.json()
        assert data["total_views"] == 1
        assert len(data["daily_breakdown"]) == 7
        assert data["daily_breakdown"][-1]["count"] == 1


@pytest.mark.asyncio
class TestLeadEndpoints:
    """Tests for lead endpoints."""

    async def test_public_submission_routed_to_owner(self, client, seller, other_seller, make_property):
        prop = await make_property(seller)

        response = await client.post("/api/leads", json={
            "name": "Jane", "email": "j@x.com", "phone": "+254711111111", "property_id": str(prop.id)
        })
        assert response.status_code == 201
        lead = response.json()
        assert lead["seller_id"] == str(seller.id)
        assert lead["status"] == "NEW"

        mine = await client.get("/api/leads", headers=auth(seller))
        theirs = await client.get("/api/leads", headers=auth(other_seller))
        assert [item["id"] for item in mine.json()] == [lead["id"]]
        assert theirs.json() == []

    async def test_missing_name_rejected(self, client):
        response = await client.post("/api/leads", json={"email": "j@x.com"})
        assert response.status_code == 400
        assert response.json()["detail"] == "Name and email are required"

    async def test_signed_in_seller_inquiry_not_routed_to_self(self, client, seller):
        response = await client.post("/api/leads", headers=auth(seller), json={
            "name": "Sarah", "email": "sarah@example.com", "message": "Looking for land in Nanyuki"
        })

        assert response.status_code == 201
        assert response.json()["seller_id"] is None
        assert (await client.get("/api/leads", headers=auth(seller))).json() == []

    async def test_invalid_email_rejected(self, client):
        response = await client.post("/api/leads", json={"name": "Jane", "email": "not-an-email"})
        assert response.status_code == 422

    async def test_status_update(self, client, seller, other_seller, make_property):
        prop = await make_property(seller)
        lead = (await client.post("/api/leads", json={
            "name": "Jane", "email": "j@x.com", "property_id": str(prop.id)
        })).json()

        forbidden = await client.patch(
            f"/api/leads/{lead['id']}/status", headers=auth(other_seller), json={"status": "CLOSED"}
        )
        invalid = await client.patch(
            f"/api/leads/{lead['id']}/status", headers=auth(seller), json={"status": "WON"}
        )
        ok = await client.patch(
            f"/api/leads/{lead['id']}/status", headers=auth(seller), json={"status": "CONTACTED"}
        )

        assert forbidden.status_code == 403
        assert invalid.status_code == 400
        assert ok.status_code == 200
        assert ok.json()["status"] == "CONTACTED"

    async def test_status_update_missing_lead(self, client, admin):
        response = await client.patch(
            f"/api/leads/{uuid.uuid4()}/status", headers=auth(admin), json={"status": "CLOSED"}
        )
        assert response.status_code == 404


@pytest.mark.asyncio
class TestAdminEndpoints:
    """Tests for admin moderation endpoints."""

    async def test_requires_admin(self, client, seller):
        response = await client.get("/api/admin/properties", headers=auth(seller))
        assert response.status_code == 403

    async def test_expire_and_extend(self, client, seller, admin, make_property):
        prop = await make_property(seller)

        expired = await client.post(
            f"/api/admin/properties/{prop.id}/expire", headers=auth(admin), json={"action": "expire"}
        )
        assert expired.status_code == 200
        assert expired.json()["is_active"] is False

        listed = await client.get("/api/properties")
        assert listed.json() == []

        extended = await client.post(
            f"/api/admin/properties/{prop.id}/expire", headers=auth(admin),
            json={"action": "extend", "duration_days": 14}
        )
        assert extended.status_code == 200
        assert extended.json()["is_active"] is True
        assert extended.json()["duration_days"] == 14

    async def test_manual_sweep(self, client, seller, admin, make_property):
        await make_property(seller, duration_days=1, created_at=utcnow() - timedelta(days=3))
        await make_property(seller, duration_days=30, created_at=utcnow())

        response = await client.post("/api/admin/properties/sweep", headers=auth(admin))

        assert response.status_code == 200
        assert response.json()["expired"] == 1
        assert len((await client.get("/api/properties")).json()) == 1

    async def test_admin_leads(self, client, seller, admin, make_property):
        prop = await make_property(seller)
        await client.post("/api/leads", json={"name": "Jane", "email": "j@x.com", "property_id": str(prop.id)})

        manual = await client.post("/api/admin/leads", headers=auth(admin), json={
            "name": "Walk In", "email": "walkin@example.com"
        })
        assert manual.status_code == 201
        assert manual.json()["seller_id"] == str(admin.id)

        listed = await client.get("/api/admin/leads", headers=auth(admin))
        assert len(listed.json()) == 2

        deleted = await client.delete(f"/api/admin/leads/{manual.json()['id']}", headers=auth(admin))
        assert deleted.status_code == 200
        assert len((await client.get("/api/admin/leads", headers=auth(admin))).json()) == 1

    async def test_admin_delete_property(self, client, seller, admin, make_property):
        prop = await make_property(seller)

        response = await client.delete(f"/api/admin/properties/{prop.id}", headers=auth(admin))
        missing = await client.delete(f"/api/admin/properties/{prop.id}", headers=auth(admin))

        assert response.status_code == 200
        assert missing.status_code == 404

    async def test_list_users_with_listing_counts(self, client, seller, admin, buyer, make_property):
        await make_property(seller)
        await make_property(seller)

        response = await client.get("/api/admin/users", headers=auth(admin))

        assert response.status_code == 200
        counts = {u["id"]: u["property_count"] for u in response.json()}
        assert counts[str(seller.id)] == 2
        assert counts[str(buyer.id)] == 0
        assert counts[str(admin.id)] == 0

    async def test_disabled_seller_locked_out(self, client, seller, admin):
        assert (await client.get("/api/leads", headers=auth(seller))).status_code == 200

        disabled = await client.patch(
            f"/api/admin/users/{seller.id}/status", headers=auth(admin), json={"is_active": False}
        )
        assert disabled.status_code == 200
        assert disabled.json()["is_active"] is False
        assert (await client.get("/api/leads", headers=auth(seller))).status_code == 401

        enabled = await client.patch(
            f"/api/admin/users/{seller.id}/status", headers=auth(admin), json={"is_active": True}
        )
        assert enabled.json()["is_active"] is True
        assert (await client.get("/api/leads", headers=auth(seller))).status_code == 200

    async def test_user_status_requires_admin(self, client, seller, other_seller):
        response = await client.patch(
            f"/api/admin/users/{other_seller.id}/status", headers=auth(seller), json={"is_active": False}
        )
        assert response.status_code == 403

    async def test_user_status_unknown_user(self, client, admin):
        response = await client.patch(
            f"/api/admin/users/{uuid.uuid4()}/status", headers=auth(admin), json={"is_active": False}
        )
        assert response.status_code == 404

    async def test_admin_cannot_disable_self(self, client, admin):
        response = await client.patch(
            f"/api/admin/users/{admin.id}/status", headers=auth(admin), json={"is_active": False}
        )
        assert response.status_code == 400
