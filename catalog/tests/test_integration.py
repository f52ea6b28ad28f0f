"""
End-to-end category workflows over HTTP
"""
import pytest
from httpx import AsyncClient

BASE = "/api/v1/categories"


@pytest.mark.integration
@pytest.mark.asyncio
class TestCategoryWorkflows:
    """Test complete workflows"""

    async def test_restructure_catalog(self, test_client: AsyncClient, add_product):
        # 1. Build Electronics > Laptops, Electronics > Phones
        electronics = (await test_client.post(BASE, json={"name": "Electronics"})).json()
        laptops = (await test_client.post(
            BASE, json={"name": "Laptops", "parent_id": electronics["id"]}
        )).json()
        phones = (await test_client.post(
            BASE, json={"name": "Phones", "parent_id": electronics["id"]}
        )).json()

        # 2. Electronics cannot go under its own child
        response = await test_client.put(
            f"{BASE}/{electronics['id']}", json={"parent_id": laptops["id"]}
        )
        assert response.status_code == 400

        # 3. Introduce Computers and move Laptops under it
        computers = (await test_client.post(
            BASE, json={"name": "Computers", "parent_id": electronics["id"]}
        )).json()
        response = await test_client.put(
            f"{BASE}/{laptops['id']}", json={"parent_id": computers["id"]}
        )
        assert response.status_code == 200

        path = (await test_client.get(f"{BASE}/{laptops['id']}/path")).json()
        assert [c["name"] for c in path] == ["Electronics", "Computers", "Laptops"]

        # 4. Phones has stock, so deleting it only hides it
        await add_product(phones["id"], "Handset")
        response = await test_client.delete(f"{BASE}/{phones['id']}")
        assert response.json()["outcome"] == "deactivated"

        tree = (await test_client.get(f"{BASE}/tree")).json()
        assert [r["name"] for r in tree] == ["Electronics"]
        assert [c["name"] for c in tree[0]["children"]] == ["Computers"]

        full_tree = (await test_client.get(f"{BASE}/tree", params={"include_inactive": True})).json()
        assert [c["name"] for c in full_tree[0]["children"]] == ["Computers", "Phones"]

        # 5. Computers still has Laptops, so it cannot be deleted yet
        response = await test_client.delete(f"{BASE}/{computers['id']}")
        assert response.status_code == 409

        # 6. Remove bottom-up
        assert (await test_client.delete(f"{BASE}/{laptops['id']}")).json()["outcome"] == "deleted"
        assert (await test_client.delete(f"{BASE}/{computers['id']}")).json()["outcome"] == "deleted"

        remaining = (await test_client.get(BASE, params={"include_inactive": True})).json()
        assert sorted(c["name"] for c in remaining) == ["Electronics", "Phones"]
