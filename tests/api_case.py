import asyncio
import unittest

from fastapi.testclient import TestClient

from hangwa.main import app
from hangwa.utils.database import drop_db

ADMIN = ("admin", "eden2024!")
MANAGER = ("manager", "eden2024!")


def order_payload(**overrides):
    payload = {
        "customerName": "홍길동",
        "customerPhone": "010-1234-5678",
        "zipCode": "12345",
        "address1": "서울시 종로구 1",
        "address2": "101호",
        "smallBoxQuantity": 2,
        "largeBoxQuantity": 0,
        "wrappingQuantity": 0,
    }
    payload.update(overrides)
    return payload


class ApiTestCase(unittest.TestCase):
    """Каждый тест - чистая база: таблицы пересоздаются, lifespan заново заполняет значения по умолчанию."""

    def setUp(self):
        asyncio.run(drop_db())
        self.client = TestClient(app)
        self.client.__enter__()

    def tearDown(self):
        self.client.__exit__(None, None, None)

    # ---------- helpers ----------

    def login(self, username, password):
        resp = self.client.post("/api/auth/token", data={"username": username, "password": password})
        self.assertEqual(resp.status_code, 200, resp.text)
        return {"Authorization": f"Bearer {resp.json()['access_token']}"}

    def admin(self):
        return self.login(*ADMIN)

    def manager(self):
        return self.login(*MANAGER)

    def register(self, username="buyer", password="pass1234", **extra):
        body = {"username": username, "password": password, "name": "구매자", "phoneNumber": "010-5555-0000"}
        body.update(extra)
        resp = self.client.post("/api/auth/register", json=body)
        self.assertEqual(resp.status_code, 201, resp.text)
        return self.login(username, password)

    def create_order(self, headers=None, **overrides):
        resp = self.client.post("/api/orders", json=order_payload(**overrides), headers=headers or {})
        self.assertEqual(resp.status_code, 201, resp.text)
        return resp.json()
