"""
Tests for categories API endpoints
"""
import pytest
from httpx import AsyncClient
from sqlalchemy import update

from catalog.models import Category

BASE = "/api/v1/categories"


async def create(client: AsyncClient, name: str, **extra) -> dict:
    response = await client.post(BASE, json={"name": name, **extra})
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.api
@pytest.mark.asyncio
class TestCategoriesAPI:
    """Test category endpoints"""

    async def test_health_check(self, test_client: AsyncClient):
        response = await test_client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    async def test_create_and_get(self, test_client: AsyncClient):
        created = await create(test_client, "  Electronics  ", description="Devices")
        assert created["name"] == "Electronics"
        assert created["is_active"] is True
        assert created["product_count"] == 0

        response = await test_client.get(f"{BASE}/{created['id']}")
        assert response.status_code == 200
        assert response.json()["description"] == "Devices"

    async def test_create_blank_name(self, test_client: AsyncClient):
        response = await test_client.post(BASE, json={"name": "   "})
        assert response.status_code == 422

    async def test_create_duplicate(self, test_client: AsyncClient):
        a = await create(test_client, "A")
        await create(test_client, "B", parent_id=a["id"])
        response = await test_client.post(BASE, json={"name": "A"})
        assert response.status_code == 409
        assert response.json()["code"] == "duplicate_name"

    async def test_create_with_missing_parent(self, test_client: AsyncClient):
        response = await test_client.post(BASE, json={"name": "X", "parent_id": 321})
        assert response.status_code == 404
        assert response.json()["code"] == "not_found"

    async def test_get_missing(self, test_client: AsyncClient):
        response = await test_client.get(f"{BASE}/999")
        assert response.status_code == 404

    async def test_list_and_include_inactive(self, test_client: AsyncClient):
        await create(test_client, "Visible")
        hidden = await create(test_client, "Hidden")
        await test_client.put(f"{BASE}/{hidden['id']}", json={"is_active": False})

        active = await test_client.get(BASE)
        assert [c["name"] for c in active.json()] == ["Visible"]

        everything = await test_client.get(BASE, params={"include_inactive": True})
        assert [c["name"] for c in everything.json()] == ["Hidden", "Visible"]

    async def test_tree(self, test_client: AsyncClient):
        electronics = await create(test_client, "Electronics")
        laptops = await create(test_client, "Laptops", parent_id=electronics["id"])
        await create(test_client, "Gaming", parent_id=laptops["id"])
        await create(test_client, "Books")

        response = await test_client.get(f"{BASE}/tree")
        assert response.status_code == 200
        roots = response.json()
        assert [r["name"] for r in roots] == ["Books", "Electronics"]
        assert roots[1]["children"][0]["name"] == "Laptops"
        assert roots[1]["children"][0]["children"][0]["name"] == "Gaming"
        assert roots[1]["children"][0]["children"][0]["depth"] == 2

    async def test_options(self, test_client: AsyncClient):
        electronics = await create(test_client, "Electronics")
        laptops = await create(test_client, "Laptops", parent_id=electronics["id"])
        await create(test_client, "Gaming", parent_id=laptops["id"])
        await create(test_client, "Books")

        response = await test_client.get(f"{BASE}/options")
        assert response.status_code == 200
        assert [(o["name"], o["depth"]) for o in response.json()] == [
            ("Books", 0),
            ("Electronics", 0),
            ("Laptops", 1),
            ("Gaming", 2),
        ]
        assert response.json()[2]["parent_id"] == electronics["id"]

    async def test_trailing_slash_is_accepted(self, test_client: AsyncClient):
        response = await test_client.post(f"{BASE}/", json={"name": "Slashed"})
        assert response.status_code == 201

        listed = await test_client.get(f"{BASE}/")
        assert listed.status_code == 200
        assert [c["name"] for c in listed.json()] == ["Slashed"]

        tree = await test_client.get(f"{BASE}/tree/")
        assert tree.status_code == 200
        assert (await test_client.get("/api/v1/audit-logs/")).status_code == 200

    async def test_children_and_roots(self, test_client: AsyncClient):
        parent = await create(test_client, "Parent")
        await create(test_client, "Zeta", parent_id=parent["id"])
        await create(test_client, "Alpha", parent_id=parent["id"])

        response = await test_client.get(f"{BASE}/{parent['id']}/children")
        assert [c["name"] for c in response.json()] == ["Alpha", "Zeta"]

        roots = await test_client.get(f"{BASE}/0/children")
        assert [c["name"] for c in roots.json()] == ["Parent"]

    async def test_path(self, test_client: AsyncClient):
        a = await create(test_client, "A")
        b = await create(test_client, "B", parent_id=a["id"])
        response = await test_client.get(f"{BASE}/{b['id']}/path")
        assert [c["name"] for c in response.json()] == ["A", "B"]

    async def test_reparent_under_own_child(self, test_client: AsyncClient):
        electronics = await create(test_client, "Electronics")
        laptops = await create(test_client, "Laptops", parent_id=electronics["id"])

        response = await test_client.put(
            f"{BASE}/{electronics['id']}", json={"parent_id": laptops["id"]}
        )
        assert response.status_code == 400
        assert response.json()["code"] == "invalid_hierarchy"

        unchanged = await test_client.get(f"{BASE}/{electronics['id']}")
        assert unchanged.json()["parent_id"] is None

    async def test_move_to_top_level(self, test_client: AsyncClient):
        a = await create(test_client, "A")
        b = await create(test_client, "B", parent_id=a["id"])
        response = await test_client.put(f"{BASE}/{b['id']}", json={"parent_id": None})
        assert response.status_code == 200
        assert response.json()["parent_id"] is None

    async def test_reparent_above_stored_cycle(self, test_client: AsyncClient, test_db):
        a = await create(test_client, "A")
        b = await create(test_client, "B")
        c = await create(test_client, "C")
        await test_db.execute(update(Category).where(Category.id == a["id"]).values(parent_id=b["id"]))
        await test_db.execute(update(Category).where(Category.id == b["id"]).values(parent_id=a["id"]))
        await test_db.commit()

        response = await test_client.put(f"{BASE}/{c['id']}", json={"parent_id": a["id"]})
        assert response.status_code == 500
        assert response.json()["code"] == "consistency_error"

    async def test_rename_collision(self, test_client: AsyncClient):
        await create(test_client, "A")
        b = await create(test_client, "B")
        response = await test_client.put(f"{BASE}/{b['id']}", json={"name": "A"})
        assert response.status_code == 409

    async def test_delete_leaf(self, test_client: AsyncClient):
        leaf = await create(test_client, "Leaf")
        response = await test_client.delete(f"{BASE}/{leaf['id']}")
        assert response.status_code == 200
        assert response.json()["outcome"] == "deleted"
        assert (await test_client.get(f"{BASE}/{leaf['id']}")).status_code == 404

    async def test_delete_with_products(self, test_client: AsyncClient, add_product):
        shoes = await create(test_client, "Shoes")
        await add_product(shoes["id"])

        response = await test_client.delete(f"{BASE}/{shoes['id']}")
        assert response.status_code == 200
        assert response.json()["outcome"] == "deactivated"

        fetched = await test_client.get(f"{BASE}/{shoes['id']}")
        assert fetched.status_code == 200
        assert fetched.json()["is_active"] is False
        assert fetched.json()["product_count"] == 1

    async def test_delete_with_children(self, test_client: AsyncClient):
        parent = await create(test_client, "Parent")
        await create(test_client, "Child", parent_id=parent["id"])

        response = await test_client.delete(f"{BASE}/{parent['id']}")
        assert response.status_code == 409
        assert response.json()["code"] == "has_children"

        still_there = await test_client.get(f"{BASE}/{parent['id']}")
        assert still_there.json()["is_active"] is True


@pytest.mark.api
@pytest.mark.asyncio
class TestAuditLogsAPI:
    async def test_category_changes_are_listed(self, test_client: AsyncClient):
        response = await test_client.post(
            BASE, json={"name": "Tracked"}, headers={"X-User-Id": "5"}
        )
        category_id = response.json()["id"]
        await test_client.put(
            f"{BASE}/{category_id}", json={"description": "note"}, headers={"X-User-Id": "5"}
        )

        logs = await test_client.get(
            "/api/v1/audit-logs", params={"entity": "category", "entity_id": str(category_id)}
        )
        assert logs.status_code == 200
        data = logs.json()
        assert [log["action"] for log in data] == ["update", "create"]
        assert data[0]["user_id"] == 5
        assert data[0]["details"]["description"] == {"from": None, "to": "note"}

        count = await test_client.get("/api/v1/audit-logs/count", params={"entity": "category"})
        assert count.json() == {"count": 2}
