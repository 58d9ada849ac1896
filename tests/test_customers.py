import unittest

from api_case import ApiTestCase


class CustomerTestCase(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.headers = self.manager()

    def add_customer(self, name, phone, **extra):
        body = {"customerName": name, "customerPhone": phone}
        body.update(extra)
        resp = self.client.post("/api/customers", json=body, headers=self.headers)
        self.assertEqual(resp.status_code, 201, resp.text)
        return resp.json()

    # ---------- CRUD ----------

    def test_create_update_and_search(self):
        created = self.add_customer("이영희", "010-1111-2222", notes="단골")
        self.assertEqual(created["orderCount"], 0)
        self.assertFalse(created["isDeleted"])

        resp = self.client.patch(f"/api/customers/{created['id']}", json={"address1": "부산시"},
                                 headers=self.headers)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["address1"], "부산시")
        self.assertEqual(resp.json()["notes"], "단골")

        self.add_customer("박민수", "010-3333-4444")
        found = self.client.get("/api/customers", params={"search": "영희"}, headers=self.headers).json()
        self.assertEqual([c["id"] for c in found], [created["id"]])

    def test_duplicate_phone_conflict(self):
        self.add_customer("이영희", "010-1111-2222")
        resp = self.client.post("/api/customers", json={"customerName": "다른사람", "customerPhone": "010-1111-2222"},
                                headers=self.headers)
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.json()["field"], "customerPhone")

    def test_requires_staff(self):
        self.assertEqual(self.client.get("/api/customers").status_code, 401)
        self.assertEqual(self.client.get("/api/customers", headers=self.register()).status_code, 403)

    def test_missing_customer(self):
        resp = self.client.patch("/api/customers/999", json={"notes": "x"}, headers=self.headers)
        self.assertEqual(resp.status_code, 404)

    # ---------- Корзина ----------

    def test_bulk_delete_with_missing_id(self):
        first = self.add_customer("가", "010-0000-0001")
        second = self.add_customer("나", "010-0000-0002")
        third = self.add_customer("다", "010-0000-0003")

        resp = self.client.post("/api/customers/bulk-delete", json={"ids": [first["id"], second["id"], 9999]},
                                headers=self.headers)
        self.assertEqual(resp.status_code, 200)
        result = resp.json()
        self.assertEqual(result["requested"], 3)
        self.assertEqual(result["succeeded"], 2)
        self.assertEqual(result["notFound"], 1)
        self.assertEqual(result["notFoundIds"], [9999])

        trash = self.client.get("/api/customers/trash", headers=self.headers).json()
        self.assertEqual({c["id"] for c in trash}, {first["id"], second["id"]})
        for customer in trash:
            self.assertIsNotNone(customer["deletedAt"])
            self.assertIn(customer["customerPhone"], ("010-0000-0001", "010-0000-0002"))
        active = self.client.get("/api/customers", headers=self.headers).json()
        self.assertEqual([c["id"] for c in active], [third["id"]])

    def test_bulk_restore_and_permanent_delete(self):
        first = self.add_customer("가", "010-0000-0001")
        second = self.add_customer("나", "010-0000-0002")
        ids = [first["id"], second["id"]]
        self.client.post("/api/customers/bulk-delete", json={"ids": ids}, headers=self.headers)

        resp = self.client.post("/api/customers/bulk-restore", json={"ids": [first["id"]]}, headers=self.headers)
        self.assertEqual(resp.json()["succeeded"], 1)

        resp = self.client.post("/api/customers/bulk-permanent-delete", json={"ids": ids}, headers=self.headers)
        result = resp.json()
        self.assertEqual(result["succeeded"], 1)
        self.assertEqual(result["skipped"], 1)
        self.assertEqual(self.client.get("/api/customers/trash", headers=self.headers).json(), [])
        active = self.client.get("/api/customers", headers=self.headers).json()
        self.assertEqual([c["id"] for c in active], [first["id"]])

    def test_bulk_requires_ids(self):
        resp = self.client.post("/api/customers/bulk-delete", json={"ids": []}, headers=self.headers)
        self.assertEqual(resp.status_code, 422)

    def test_single_trash_cycle(self):
        created = self.add_customer("가", "010-0000-0001")
        url = f"/api/customers/{created['id']}"
        self.assertEqual(self.client.delete(f"{url}/permanent", headers=self.headers).status_code, 409)
        self.assertTrue(self.client.delete(url, headers=self.headers).json()["isDeleted"])
        # повторное удаление ничего не меняет
        self.assertEqual(self.client.delete(url, headers=self.headers).status_code, 200)
        self.assertFalse(self.client.post(f"{url}/restore", headers=self.headers).json()["isDeleted"])
        self.client.delete(url, headers=self.headers)
        self.assertEqual(self.client.delete(f"{url}/permanent", headers=self.headers).status_code, 200)
        self.assertEqual(self.client.delete(url, headers=self.headers).status_code, 404)

    # ---------- Импорт и статистика ----------

    def test_upload_csv(self):
        self.add_customer("기존고객", "010-0000-0001")
        content = (
            "\ufeff이름,전화번호,주소,메모\n"
            "기존고객,010-0000-0001,대구시,갱신\n"
            "새고객,010-0000-0009,광주시,\n"
            ",010-0000-0010,주소만,\n"
        ).encode("utf-8")
        resp = self.client.post(
            "/api/customers/upload",
            files={"file": ("customers.csv", content, "text/csv")},
            headers=self.headers,
        )
        self.assertEqual(resp.status_code, 200, resp.text)
        result = resp.json()
        self.assertEqual(result["created"], 1)
        self.assertEqual(result["updated"], 1)
        self.assertEqual(result["skipped"], 1)
        self.assertEqual(len(result["errors"]), 1)

        customers = {c["customerPhone"]: c for c in self.client.get("/api/customers", headers=self.headers).json()}
        self.assertEqual(customers["010-0000-0001"]["address1"], "대구시")
        self.assertEqual(customers["010-0000-0001"]["notes"], "갱신")
        self.assertEqual(customers["010-0000-0009"]["customerName"], "새고객")

    def test_upload_without_required_columns(self):
        resp = self.client.post(
            "/api/customers/upload",
            files={"file": ("customers.csv", "address,notes\n서울,메모\n".encode("utf-8"), "text/csv")},
            headers=self.headers,
        )
        self.assertEqual(resp.status_code, 400)

    def test_addresses(self):
        self.create_order()
        self.create_order(address1="인천시 2", address2=None)
        resp = self.client.get("/api/customers/010-1234-5678/addresses", headers=self.headers)
        self.assertEqual(resp.status_code, 200)
        addresses = {a["address1"] for a in resp.json()}
        self.assertEqual(addresses, {"서울시 종로구 1", "인천시 2"})

        resp = self.client.get("/api/customers/010-0000-0000/addresses", headers=self.headers)
        self.assertEqual(resp.status_code, 404)

    def test_refresh_stats(self):
        first = self.create_order()
        self.create_order()
        self.client.delete(f"/api/orders/{first['id']}", headers=self.headers)

        resp = self.client.post("/api/customers/refresh-stats", headers=self.headers)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["updated"], 1)

        customer = self.client.get("/api/customers", headers=self.headers).json()[0]
        self.assertEqual(customer["orderCount"], 1)
        self.assertEqual(customer["totalSpent"], 42000)


if __name__ == "__main__":
    unittest.main()
