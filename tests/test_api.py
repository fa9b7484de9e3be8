import httpx

from app.core.db import get_db
from app.core.security import create_access_token, hash_password
from app.models.enums.sales_order_status import SaleStatus
from main import app
from tests.helpers import DatabaseTestCase


class APITestCase(DatabaseTestCase):
    async def asyncSetUp(self):
        await super().asyncSetUp()

        async def override_get_db():
            async with self.Session() as session:
                yield session

        app.dependency_overrides[get_db] = override_get_db
        self.client = httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app),
            base_url="http://testserver",
        )

    async def asyncTearDown(self):
        await self.client.aclose()
        app.dependency_overrides.clear()
        await super().asyncTearDown()

    def auth(self, user):
        token = create_access_token(subject=user.username, token_version=user.token_version)
        return {"Authorization": f"Bearer {token}"}


class AuthAPITests(APITestCase):
    async def test_missing_token(self):
        response = await self.client.get("/sales-orders")

        self.assertEqual(response.status_code, 401)
        body = response.json()
        self.assertFalse(body["success"])
        self.assertEqual(body["error_code"], "UNAUTHORIZED")

    async def test_login_then_logout_revokes_token(self):
        user = await self.make_user("sales")
        user.password_hash = hash_password("correct horse")
        await self.session.commit()

        bad = await self.client.post("/auth/login", json={"email": user.username, "password": "wrong"})
        self.assertEqual(bad.status_code, 401)

        response = await self.client.post("/auth/login", json={"email": user.username, "password": "correct horse"})
        self.assertEqual(response.status_code, 200)
        data = response.json()["data"]
        self.assertEqual(data["user"]["role"], "sales")
        headers = {"Authorization": f"Bearer {data['auth']['access_token']}"}

        self.assertEqual((await self.client.get("/sales-orders", headers=headers)).status_code, 200)
        self.assertEqual((await self.client.post("/auth/logout", headers=headers)).status_code, 200)
        self.assertEqual((await self.client.get("/sales-orders", headers=headers)).status_code, 401)


class SalesOrderAPITests(APITestCase):
    async def asyncSetUp(self):
        await super().asyncSetUp()
        self.sales = await self.make_user("sales")
        self.order = await self.make_sales_order(self.sales)

    async def test_non_owner_gets_not_found_envelope(self):
        stranger = await self.make_user("sales")

        response = await self.client.get(f"/sales-orders/{self.order.id}", headers=self.auth(stranger))

        self.assertEqual(response.status_code, 404)
        self.assertEqual(
            response.json(),
            {
                "success": False,
                "message": "Sales order not found",
                "error_code": "SALES_ORDER_NOT_FOUND",
                "details": None,
            },
        )

    async def test_permissions_endpoint(self):
        response = await self.client.get(
            f"/sales-orders/{self.order.id}/permissions", headers=self.auth(self.sales)
        )

        self.assertEqual(response.status_code, 200)
        data = response.json()["data"]
        self.assertEqual(data["sale_status"], "NEW")
        self.assertEqual(data["available_actions"], ["update_status_pr"])
        self.assertEqual(data["next_statuses"], ["PR", "CANCELLED"])
        self.assertIn("items", data["editable_fields"])
        self.assertFalse(data["can_cancel"])

    async def test_action_endpoint(self):
        response = await self.client.post(
            f"/sales-orders/{self.order.id}/actions/update_status_pr", headers=self.auth(self.sales)
        )

        self.assertEqual(response.status_code, 200)
        data = response.json()["data"]
        self.assertEqual(data["sale_status"], SaleStatus.PR.value)
        self.assertEqual(data["status"], "ACTIVE")

        again = await self.client.post(
            f"/sales-orders/{self.order.id}/actions/update_status_pr", headers=self.auth(self.sales)
        )
        self.assertEqual(again.status_code, 403)
        self.assertEqual(again.json()["error_code"], "PERMISSION_DENIED")

    async def test_patch_forbidden_field(self):
        response = await self.client.patch(
            f"/sales-orders/{self.order.id}",
            json={"payment_status": "PAID"},
            headers=self.auth(self.sales),
        )

        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["details"], {"fields": ["payment_status"]})

    async def test_purchase_order_precondition(self):
        purchasing = await self.make_user("purchasing")

        response = await self.client.post(
            f"/sales-orders/{self.order.id}/purchase-orders", headers=self.auth(purchasing)
        )

        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()["error_code"], "PRECONDITION_FAILED")

    async def test_activity_log_is_restricted(self):
        manager = await self.make_user("manager-sales")
        await self.client.post(
            f"/sales-orders/{self.order.id}/actions/update_status_pr", headers=self.auth(self.sales)
        )

        denied = await self.client.get("/activities", headers=self.auth(self.sales))
        self.assertEqual(denied.status_code, 403)

        allowed = await self.client.get("/activities", headers=self.auth(manager))
        self.assertEqual(allowed.status_code, 200)
        self.assertEqual(allowed.json()["data"]["total"], 1)
