import unittest

from api_case import ApiTestCase, order_payload


class OrderCreateTestCase(ApiTestCase):
    def test_create_and_fetch_round_trip(self):
        created = self.create_order()
        self.assertTrue(created["orderNumber"].startswith("ED"))
        self.assertEqual(created["status"], "pending")
        self.assertEqual(created["paymentStatus"], "pending")
        self.assertEqual(created["shippingFee"], 4000)
        self.assertEqual(created["totalAmount"], 42000)
        self.assertNotIn("totalCost", created)
        self.assertNotIn("orderPassword", created)

        resp = self.client.get(f"/api/orders/{created['id']}", headers=self.manager())
        self.assertEqual(resp.status_code, 200)
        fetched = resp.json()
        self.assertEqual(fetched["customerName"], "홍길동")
        self.assertEqual(fetched["smallBoxQuantity"], 2)
        self.assertEqual(fetched["totalAmount"], 42000)
        self.assertEqual(fetched["smallBoxPrice"], 19000)
        self.assertEqual(fetched["totalCost"], 2 * 15000)
        self.assertEqual(fetched["netProfit"], 42000 - 30000 - 4000)

    def test_order_numbers_are_sequential(self):
        first = self.create_order()
        second = self.create_order()
        self.assertEqual(first["orderNumber"][:10], second["orderNumber"][:10])
        self.assertEqual(int(second["orderNumber"][10:]), int(first["orderNumber"][10:]) + 1)

    def test_empty_order_rejected(self):
        resp = self.client.post("/api/orders", json=order_payload(smallBoxQuantity=0, wrappingQuantity=3))
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["field"], "smallBoxQuantity")

    def test_missing_address_is_validation_error(self):
        payload = order_payload()
        del payload["address1"]
        resp = self.client.post("/api/orders", json=payload)
        self.assertEqual(resp.status_code, 422)

    def test_client_total_is_verified(self):
        resp = self.client.post("/api/orders", json=order_payload(totalAmount=1000))
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["field"], "totalAmount")

        resp = self.client.post("/api/orders", json=order_payload(totalAmount=42000))
        self.assertEqual(resp.status_code, 201)

    def test_free_shipping_at_threshold(self):
        created = self.create_order(smallBoxQuantity=3, largeBoxQuantity=3)
        self.assertEqual(created["shippingFee"], 0)
        self.assertEqual(created["totalAmount"], 3 * 19000 + 3 * 21000)

    def test_new_prices_apply_to_new_orders_only(self):
        first = self.create_order()
        resp = self.client.post("/api/settings", json={"key": "smallBoxPrice", "value": "20000"},
                                headers=self.admin())
        self.assertEqual(resp.status_code, 200)
        second = self.create_order()
        self.assertEqual(second["totalAmount"], 2 * 20000 + 4000)

        resp = self.client.get(f"/api/orders/{first['id']}", headers=self.manager())
        self.assertEqual(resp.json()["totalAmount"], 42000)
        self.assertEqual(resp.json()["smallBoxPrice"], 19000)

    def test_customer_registered_on_order(self):
        self.create_order()
        self.create_order(smallBoxQuantity=1)
        resp = self.client.get("/api/customers", headers=self.manager())
        customers = resp.json()
        self.assertEqual(len(customers), 1)
        self.assertEqual(customers[0]["customerPhone"], "010-1234-5678")
        self.assertEqual(customers[0]["orderCount"], 2)
        self.assertEqual(customers[0]["totalSpent"], 42000 + 23000)


class OrderAccessTestCase(ApiTestCase):
    def test_list_requires_staff(self):
        self.create_order()
        self.assertEqual(self.client.get("/api/orders").status_code, 401)
        self.assertEqual(self.client.get("/api/orders", headers=self.register()).status_code, 403)
        resp = self.client.get("/api/orders", headers=self.manager())
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(len(resp.json()), 1)

    def test_password_protected_guest_order(self):
        created = self.create_order(orderPassword="1234")
        url = f"/api/orders/{created['id']}"

        self.assertEqual(self.client.get(url).status_code, 403)
        self.assertEqual(self.client.get(url, headers={"X-Order-Password": "0000"}).status_code, 403)
        resp = self.client.get(url, headers={"X-Order-Password": "1234"})
        self.assertEqual(resp.status_code, 200)
        self.assertNotIn("netProfit", resp.json())

    def test_missing_order_is_404_not_403(self):
        resp = self.client.get("/api/orders/99999", headers={"X-Order-Password": "1234"})
        self.assertEqual(resp.status_code, 404)

    def test_owned_order(self):
        owner = self.register("owner1")
        created = self.create_order(headers=owner)
        url = f"/api/orders/{created['id']}"

        self.assertEqual(self.client.get(url, headers=owner).status_code, 200)
        self.assertEqual(self.client.get(url).status_code, 403)
        other = self.register("other1")
        self.assertEqual(self.client.get(url, headers=other).status_code, 403)
        resp = self.client.patch(url, json={"address2": "202호"}, headers=other)
        self.assertEqual(resp.status_code, 403)

        mine = self.client.get("/api/my-orders", headers=owner).json()
        self.assertEqual([o["id"] for o in mine], [created["id"]])
        self.assertEqual(self.client.get("/api/my-orders", headers=other).json(), [])

    def test_my_orders_requires_login(self):
        self.assertEqual(self.client.get("/api/my-orders").status_code, 401)


class OrderLookupTestCase(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.first = self.create_order()
        self.second = self.create_order(customerName="김철수", customerPhone="010-9999-0000")

    def test_lookup_by_phone(self):
        resp = self.client.get("/api/orders/lookup", params={"phone": "010-1234-5678"})
        self.assertEqual(resp.status_code, 200)
        orders = resp.json()
        self.assertEqual([o["id"] for o in orders], [self.first["id"]])
        self.assertNotIn("totalCost", orders[0])

    def test_lookup_by_name(self):
        resp = self.client.get("/api/orders/lookup", params={"name": "김철수"})
        self.assertEqual([o["id"] for o in resp.json()], [self.second["id"]])

    def test_lookup_matches_either_field(self):
        resp = self.client.get("/api/orders/lookup", params={"phone": "010-1234-5678", "name": "김철수"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual({o["id"] for o in resp.json()}, {self.first["id"], self.second["id"]})

    def test_lookup_requires_a_field(self):
        self.assertEqual(self.client.get("/api/orders/lookup").status_code, 400)

    def test_lookup_no_match(self):
        resp = self.client.get("/api/orders/lookup", params={"phone": "010-0000-0000"})
        self.assertEqual(resp.status_code, 404)

    def test_lookup_is_exact(self):
        resp = self.client.get("/api/orders/lookup", params={"name": "김철"})
        self.assertEqual(resp.status_code, 404)


class OrderEditTestCase(ApiTestCase):
    def test_quantity_change_recomputes_shipping(self):
        created = self.create_order()
        resp = self.client.patch(f"/api/orders/{created['id']}", json={"largeBoxQuantity": 4})
        self.assertEqual(resp.status_code, 200, resp.text)
        updated = resp.json()
        self.assertEqual(updated["shippingFee"], 0)
        self.assertEqual(updated["totalAmount"], 2 * 19000 + 4 * 21000)

    def test_edit_rejects_wrong_total(self):
        created = self.create_order()
        resp = self.client.patch(f"/api/orders/{created['id']}", json={"smallBoxQuantity": 3, "totalAmount": 42000})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["field"], "totalAmount")

    def test_null_depositor_flag_rejected(self):
        created = self.create_order()
        url = f"/api/orders/{created['id']}"
        resp = self.client.patch(url, json={"isDifferentDepositor": None})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["field"], "isDifferentDepositor")

        resp = self.client.patch(url, json={"isDifferentDepositor": True, "depositorName": "김입금"})
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.json()["isDifferentDepositor"])

    def test_edit_cannot_empty_order(self):
        created = self.create_order()
        resp = self.client.patch(f"/api/orders/{created['id']}", json={"smallBoxQuantity": 0})
        self.assertEqual(resp.status_code, 400)

    def test_guest_edit_with_password(self):
        created = self.create_order(orderPassword="1234")
        url = f"/api/orders/{created['id']}"
        self.assertEqual(self.client.patch(url, json={"address2": "303호"}).status_code, 403)
        resp = self.client.patch(url, json={"address2": "303호", "orderPassword": "1234"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["address2"], "303호")

    def test_confirmed_order_cannot_be_edited(self):
        created = self.create_order()
        url = f"/api/orders/{created['id']}"
        resp = self.client.patch(f"{url}/payment-status", json={"paymentStatus": "confirmed"},
                                 headers=self.manager())
        self.assertEqual(resp.status_code, 200)

        resp = self.client.patch(url, json={"smallBoxQuantity": 5, "address2": "변경"})
        self.assertEqual(resp.status_code, 409)

        order = self.client.get(url, headers=self.manager()).json()
        self.assertEqual(order["smallBoxQuantity"], 2)
        self.assertEqual(order["address2"], "101호")
        self.assertEqual(order["totalAmount"], 42000)

    def test_staff_can_edit_after_processing_started(self):
        created = self.create_order()
        url = f"/api/orders/{created['id']}"
        headers = self.manager()
        self.client.patch(f"{url}/status", json={"status": "preparing"}, headers=headers)
        resp = self.client.patch(url, json={"address2": "정정"}, headers=headers)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["address2"], "정정")


class OrderStatusTestCase(ApiTestCase):
    def test_manager_sets_delivered_admin_cannot(self):
        first = self.create_order()
        second = self.create_order()

        resp = self.client.patch(f"/api/orders/{first['id']}/status", json={"status": "delivered"},
                                 headers=self.manager())
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["status"], "delivered")
        self.assertIsNotNone(resp.json()["deliveredDate"])

        resp = self.client.patch(f"/api/orders/{second['id']}/status", json={"status": "delivered"},
                                 headers=self.admin())
        self.assertEqual(resp.status_code, 403)
        order = self.client.get(f"/api/orders/{second['id']}", headers=self.admin()).json()
        self.assertEqual(order["status"], "pending")

    def test_admin_sets_other_statuses(self):
        created = self.create_order()
        resp = self.client.patch(f"/api/orders/{created['id']}/status", json={"status": "shipping"},
                                 headers=self.admin())
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["status"], "shipping")

    def test_member_cannot_change_status(self):
        created = self.create_order()
        resp = self.client.patch(f"/api/orders/{created['id']}/status", json={"status": "preparing"},
                                 headers=self.register())
        self.assertEqual(resp.status_code, 403)

    def test_unknown_status_is_rejected(self):
        created = self.create_order()
        resp = self.client.patch(f"/api/orders/{created['id']}/status", json={"status": "lost"},
                                 headers=self.manager())
        self.assertEqual(resp.status_code, 422)

    def test_same_status_is_noop(self):
        created = self.create_order()
        headers = self.manager()
        url = f"/api/orders/{created['id']}"

        first = self.client.patch(f"{url}/status", json={"status": "seller_shipped"}, headers=headers).json()
        second = self.client.patch(f"{url}/status", json={"status": "seller_shipped"}, headers=headers).json()
        self.assertTrue(first["sellerShipped"])
        self.assertEqual(first["sellerShippedDate"], second["sellerShippedDate"])
        self.assertEqual(self.client.get(f"{url}/sms", headers=headers).json(), [])

    def test_bulk_seller_shipped(self):
        first = self.create_order()
        delivered = self.create_order()
        headers = self.manager()
        self.client.patch(f"/api/orders/{delivered['id']}/status", json={"status": "delivered"}, headers=headers)

        resp = self.client.patch("/api/orders/seller-shipped",
                                 json={"orderIds": [first["id"], delivered["id"], 9999]}, headers=headers)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {
            "requested": 3, "succeeded": 1, "notFound": 1, "notFoundIds": [9999], "skipped": 1,
        })
        order = self.client.get(f"/api/orders/{first['id']}", headers=headers).json()
        self.assertEqual(order["status"], "seller_shipped")
        self.assertTrue(order["sellerShipped"])


class PaymentStatusTestCase(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.order = self.create_order()
        self.url = f"/api/orders/{self.order['id']}/payment-status"
        self.headers = self.manager()

    def test_confirm_full_payment(self):
        resp = self.client.patch(self.url, json={"paymentStatus": "confirmed", "actualPaidAmount": 42000},
                                 headers=self.headers)
        body = resp.json()
        self.assertEqual(body["paymentStatus"], "confirmed")
        self.assertEqual(body["discountAmount"], 0)
        self.assertIsNotNone(body["paymentConfirmedAt"])

    def test_discount(self):
        resp = self.client.patch(
            self.url,
            json={"paymentStatus": "confirmed", "actualPaidAmount": 40000, "discountReason": "지인 할인"},
            headers=self.headers,
        )
        body = resp.json()
        self.assertEqual(body["paymentStatus"], "confirmed")
        self.assertEqual(body["discountAmount"], 2000)
        self.assertEqual(body["actualPaidAmount"], 40000)
        self.assertEqual(body["netProfit"], 40000 - 30000 - 4000)

    def test_partial_payment(self):
        resp = self.client.patch(self.url, json={"paymentStatus": "confirmed", "actualPaidAmount": 30000},
                                 headers=self.headers)
        body = resp.json()
        self.assertEqual(body["paymentStatus"], "partial")
        self.assertIn("12,000", body["discountReason"])
        self.assertIsNotNone(body["paymentConfirmedAt"])

    def test_over_payment(self):
        resp = self.client.patch(self.url, json={"paymentStatus": "confirmed", "actualPaidAmount": 45000},
                                 headers=self.headers)
        body = resp.json()
        self.assertEqual(body["paymentStatus"], "confirmed")
        self.assertIn("과납입", body["discountReason"])

    def test_refund_clears_confirmation(self):
        self.client.patch(self.url, json={"paymentStatus": "confirmed"}, headers=self.headers)
        resp = self.client.patch(self.url, json={"paymentStatus": "refunded"}, headers=self.headers)
        self.assertEqual(resp.json()["paymentStatus"], "refunded")
        self.assertIsNone(resp.json()["paymentConfirmedAt"])

    def test_staff_edit_keeps_discounted_total(self):
        self.client.patch(
            self.url,
            json={"paymentStatus": "confirmed", "actualPaidAmount": 40000, "discountReason": "지인 할인"},
            headers=self.headers,
        )
        order_url = f"/api/orders/{self.order['id']}"

        resp = self.client.patch(order_url, json={"address2": "102호", "totalAmount": 42000}, headers=self.headers)
        self.assertEqual(resp.status_code, 200, resp.text)
        resp = self.client.patch(order_url, json={"address2": "103호"}, headers=self.headers)
        body = resp.json()
        self.assertEqual(body["totalAmount"], 42000)
        self.assertEqual(body["discountAmount"], 2000)
        self.assertEqual(body["netProfit"], 40000 - 30000 - 4000)

    def test_guest_cannot_confirm(self):
        resp = self.client.patch(self.url, json={"paymentStatus": "confirmed"})
        self.assertEqual(resp.status_code, 401)


class OrderDateTestCase(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.order = self.create_order()
        self.url = f"/api/orders/{self.order['id']}"
        self.headers = self.manager()

    def test_scheduled_date_set_and_clear(self):
        resp = self.client.patch(f"{self.url}/scheduled-date", json={"date": "2026-12-24T09:00:00"},
                                 headers=self.headers)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["scheduledDate"], "2026-12-24T09:00:00")

        resp = self.client.patch(f"{self.url}/scheduled-date", json={"date": None}, headers=self.headers)
        self.assertIsNone(resp.json()["scheduledDate"])

    def test_date_key_is_required(self):
        resp = self.client.patch(f"{self.url}/scheduled-date", json={}, headers=self.headers)
        self.assertEqual(resp.status_code, 422)

    def test_delivered_date_requires_delivered_status(self):
        resp = self.client.patch(f"{self.url}/delivered-date", json={"date": "2026-12-24T09:00:00"},
                                 headers=self.headers)
        self.assertEqual(resp.status_code, 409)

        self.client.patch(f"{self.url}/status", json={"status": "delivered"}, headers=self.headers)
        resp = self.client.patch(f"{self.url}/delivered-date", json={"date": "2026-12-24T09:00:00"},
                                 headers=self.headers)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["deliveredDate"], "2026-12-24T09:00:00")

    def test_trashed_order_dates_are_locked(self):
        self.client.delete(self.url, headers=self.headers)
        resp = self.client.patch(f"{self.url}/scheduled-date", json={"date": "2026-12-24T09:00:00"},
                                 headers=self.headers)
        self.assertEqual(resp.status_code, 409)
        trashed = self.client.get(self.url, headers=self.headers).json()
        self.assertIsNone(trashed["scheduledDate"])

    def test_seller_shipped_date_requires_flag(self):
        resp = self.client.patch(f"{self.url}/seller-shipped-date", json={"date": "2026-12-20T09:00:00"},
                                 headers=self.headers)
        self.assertEqual(resp.status_code, 409)

        resp = self.client.patch(f"{self.url}/seller-shipped-date", json={"date": None}, headers=self.headers)
        self.assertEqual(resp.status_code, 200)

        self.client.patch("/api/orders/seller-shipped", json={"orderIds": [self.order["id"]]}, headers=self.headers)
        resp = self.client.patch(f"{self.url}/seller-shipped-date", json={"date": "2026-12-20T09:00:00"},
                                 headers=self.headers)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["sellerShippedDate"], "2026-12-20T09:00:00")


class OrderTrashTestCase(ApiTestCase):
    def test_trash_restore_and_permanent_delete(self):
        created = self.create_order()
        url = f"/api/orders/{created['id']}"
        headers = self.manager()

        self.assertEqual(self.client.delete(f"{url}/permanent", headers=headers).status_code, 409)

        resp = self.client.delete(url, headers=headers)
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.json()["isDeleted"])
        self.assertEqual(self.client.get(url).status_code, 404)
        self.assertEqual(self.client.get("/api/orders", headers=headers).json(), [])
        trash = self.client.get("/api/orders/trash", headers=headers).json()
        self.assertEqual([o["id"] for o in trash], [created["id"]])

        resp = self.client.post(f"{url}/restore", headers=headers)
        self.assertFalse(resp.json()["isDeleted"])

        self.client.delete(url, headers=headers)
        self.assertEqual(self.client.delete(f"{url}/permanent", headers=headers).status_code, 200)
        self.assertEqual(self.client.get(url, headers=headers).status_code, 404)

    def test_trash_requires_staff(self):
        created = self.create_order()
        self.assertEqual(self.client.delete(f"/api/orders/{created['id']}").status_code, 401)


    def test_bulk_trash(self):
        first = self.create_order()
        second = self.create_order()
        headers = self.manager()
        ids = [first["id"], second["id"], 9999]

        result = self.client.post("/api/orders/bulk-delete", json={"ids": ids}, headers=headers).json()
        self.assertEqual((result["succeeded"], result["notFound"]), (2, 1))
        self.assertEqual(self.client.get("/api/orders", headers=headers).json(), [])

        result = self.client.post("/api/orders/bulk-permanent-delete", json={"ids": ids}, headers=headers).json()
        self.assertEqual(result["succeeded"], 2)
        self.assertEqual(self.client.get("/api/orders/trash", headers=headers).json(), [])


class OrderExportTestCase(ApiTestCase):
    def test_export_csv(self):
        created = self.create_order()
        resp = self.client.get("/api/orders/export/csv", headers=self.manager())
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.headers["content-type"].startswith("text/csv"))
        text = resp.content.decode("utf-8-sig")
        self.assertIn("주문번호", text.splitlines()[0])
        self.assertIn(created["orderNumber"], text)
        self.assertIn("한과1호×2개", text)


if __name__ == "__main__":
    unittest.main()
