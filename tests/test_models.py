import json
import os
import sys
import unittest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
src_path = os.path.join(ROOT, "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from api.errors import ApiError
from api.models import Address, Analytics, Order, OrderResult, Product
from utils.pure import format_money, markdown_table, status_badge, truncate


def order_json(**overrides):
    data = {
        "id": 1,
        "customer_name": "Ali",
        "customer_phone": "0100",
        "customer_address": "",
        "items_summary": "Mug x2, Plate x1",
        "total_price": 300,
        "receipt_url": None,
        "status": "pending",
        "created_at": "2024-06-02T09:00:00",
    }
    data.update(overrides)
    return data


class AddressTestCase(unittest.TestCase):
    def test_structured_address(self):
        raw = json.dumps(
            {"street": "5 Tahrir", "local_area": "Downtown", "city": "Cairo", "postal_code": "11511"}
        )
        addr = Address.parse(raw)
        self.assertTrue(addr.structured)
        self.assertEqual(addr.city, "Cairo")
        self.assertEqual(addr.one_line(), "5 Tahrir, Downtown, Cairo, 11511")

    def test_plain_text_address_is_kept_raw(self):
        addr = Address.parse("5 Tahrir St, Cairo")
        self.assertFalse(addr.structured)
        self.assertEqual(addr.one_line(), "5 Tahrir St, Cairo")

    def test_json_that_is_not_an_object(self):
        addr = Address.parse('["a", "b"]')
        self.assertFalse(addr.structured)
        self.assertEqual(addr.raw, '["a", "b"]')

    def test_missing_address(self):
        addr = Address.parse(None)
        self.assertFalse(addr.structured)
        self.assertEqual(addr.one_line(), "")


class OrderTestCase(unittest.TestCase):
    def test_from_json(self):
        order = Order.from_json(order_json(status="Shipped", receipt_url=""))
        self.assertEqual(order.status, "shipped")
        self.assertIsNone(order.receipt_url)
        self.assertEqual(order.items, ["Mug x2", "Plate x1"])
        self.assertEqual(order.created_at.year, 2024)

    def test_bad_date_is_tolerated(self):
        self.assertIsNone(Order.from_json(order_json(created_at="yesterday")).created_at)

    def test_missing_id_is_malformed(self):
        data = order_json()
        del data["id"]
        with self.assertRaises(ApiError):
            Order.from_json(data)

    def test_missing_or_unknown_status_is_malformed(self):
        for status in (None, "", "lost"):
            with self.subTest(status=status):
                with self.assertRaises(ApiError):
                    Order.from_json(order_json(status=status))


class OrderResultTestCase(unittest.TestCase):
    def test_envelope(self):
        result = OrderResult.decode(
            {"order": order_json(status="processing"), "user_whatsapp_link": "https://wa.me/1"}
        )
        self.assertEqual(result.kind, "envelope")
        self.assertEqual(result.order.status, "processing")
        self.assertTrue(result.notified)

    def test_envelope_without_link(self):
        result = OrderResult.decode({"order": order_json(), "user_whatsapp_link": None})
        self.assertEqual(result.kind, "envelope")
        self.assertFalse(result.notified)

    def test_bare_order(self):
        result = OrderResult.decode(order_json(status="cancelled"))
        self.assertEqual(result.kind, "bare")
        self.assertEqual(result.order.status, "cancelled")
        self.assertIsNone(result.whatsapp_link)

    def test_non_object_payload(self):
        with self.assertRaises(ApiError):
            OrderResult.decode(None)
        with self.assertRaises(ApiError):
            OrderResult.decode([order_json()])


class ProductTestCase(unittest.TestCase):
    def test_gallery_preferred_over_image_url(self):
        p = Product.from_json(
            {"id": 2, "name": "Mug", "price": "80", "category": "Kitchen", "image_url": "a", "gallery": ["b", "c"]}
        )
        self.assertEqual(p.price, 80.0)
        self.assertEqual(p.display_gallery, ("b", "c"))

    def test_falls_back_to_image_url(self):
        p = Product.from_json({"id": 2, "name": "Mug", "price": 80, "category": "Kitchen", "image_url": "a"})
        self.assertEqual(p.display_gallery, ("a",))
        p = Product.from_json({"id": 2, "name": "Mug", "price": 80, "category": "Kitchen"})
        self.assertEqual(p.display_gallery, ())


class AnalyticsTestCase(unittest.TestCase):
    def test_empty_payload(self):
        a = Analytics.from_json({})
        self.assertEqual(a.kpis, ())
        self.assertEqual(a.total_active_orders, 0)

    def test_malformed_payload(self):
        with self.assertRaises(ApiError):
            Analytics.from_json({"kpis": ["not an object"]})
        with self.assertRaises(ApiError):
            Analytics.from_json([])


class PureTestCase(unittest.TestCase):
    def test_markdown_table(self):
        md = markdown_table(["A", "B"], [["x|y", 2]], aligns="lr")
        self.assertEqual(md, "| A | B |\n| :--- | ---: |\n| x\\|y | 2 |")
        self.assertEqual(markdown_table([], []), "")
        with self.assertRaises(ValueError):
            markdown_table(["A"], [], aligns="lr")

    def test_formatting(self):
        self.assertEqual(format_money(1234.5, "EGP"), "1,234.50 EGP")
        self.assertEqual(status_badge("cancelled"), "[bold red]Cancelled[/]")
        self.assertEqual(truncate("abcdef", 4), "abc…")
        self.assertEqual(truncate("abc", 4), "abc")


if __name__ == "__main__":
    unittest.main()
