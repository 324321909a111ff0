import asyncio
import os
import sys
import unittest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
src_path = os.path.join(ROOT, "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from api.errors import NetworkFailure, ValidationFailure
from api.models import Order, OrderResult
from utils.order_flow import (
    InvalidTransition,
    OrderBusy,
    OrderWorkflow,
    available_actions,
    can_approve,
    can_cancel,
    filter_orders,
    manual_targets,
    parse_weight,
)


def make_order(oid=1, status="pending", name="Mona Adel", phone="+20 100-555-1234"):
    return Order.from_json(
        {
            "id": oid,
            "customer_name": name,
            "customer_phone": phone,
            "customer_address": "",
            "items_summary": "Blanket x1",
            "total_price": 100,
            "status": status,
        }
    )


class FakeOrderApi:
    def __init__(self, orders):
        self.orders = list(orders)
        self.calls = []
        self.fail_with = None
        self.link = None
        self.gate = None
        self.list_gate = None
        self.list_calls = 0

    async def _maybe_fail(self):
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_with is not None:
            raise self.fail_with

    async def get_orders(self):
        # the server reads its rows before the response is delayed
        self.list_calls += 1
        snapshot = list(self.orders)
        if self.list_gate is not None:
            await self.list_gate.wait()
        return snapshot

    async def update_order_status(self, order_id, status):
        self.calls.append(("status", order_id, status))
        await self._maybe_fail()
        return make_order(order_id, status)

    async def approve_order(self, order_id, weight):
        self.calls.append(("approve", order_id, weight))
        await self._maybe_fail()
        shipped = make_order(order_id, "shipped")
        self.orders = [shipped if o.id == order_id else o for o in self.orders]
        updated = {"order": _as_json(shipped)}
        if self.link:
            updated["user_whatsapp_link"] = self.link
            return OrderResult.decode(updated)
        return OrderResult.decode(updated["order"])

    async def cancel_order(self, order_id):
        self.calls.append(("cancel", order_id))
        await self._maybe_fail()
        return OrderResult.decode(
            {"order": _as_json(make_order(order_id, "cancelled")), "user_whatsapp_link": self.link}
        )


def _as_json(order):
    return {
        "id": order.id,
        "customer_name": order.customer_name,
        "customer_phone": order.customer_phone,
        "customer_address": order.customer_address.raw,
        "items_summary": order.items_summary,
        "total_price": order.total_price,
        "status": order.status,
    }


class OrderRulesTestCase(unittest.TestCase):
    def test_actions_by_status(self):
        expected = {
            "pending": ("approve", "cancel"),
            "processing": ("cancel",),
            "shipped": ("cancel",),
            "delivered": (),
            "cancelled": (),
        }
        for status, actions in expected.items():
            with self.subTest(status=status):
                self.assertEqual(available_actions(make_order(status=status)), actions)

    def test_only_pending_can_be_approved(self):
        self.assertTrue(can_approve(make_order(status="pending")))
        self.assertFalse(can_approve(make_order(status="shipped")))
        self.assertFalse(can_cancel(make_order(status="delivered")))

    def test_manual_targets(self):
        self.assertEqual(
            manual_targets(make_order(status="processing")),
            ("pending", "shipped", "delivered", "cancelled"),
        )
        self.assertEqual(manual_targets(make_order(status="cancelled")), ())
        self.assertEqual(manual_targets(make_order(status="delivered")), ())


class FilterTestCase(unittest.TestCase):
    def setUp(self):
        self.orders = [
            make_order(12, name="Mona Adel", phone="+20 100-555-1212"),
            make_order(34, name="Omar Said", phone="01229998888"),
        ]

    def test_empty_query_keeps_everything(self):
        self.assertEqual(filter_orders(self.orders, ""), self.orders)
        self.assertEqual(filter_orders(self.orders, "   "), self.orders)

    def test_name_is_case_insensitive(self):
        self.assertEqual([o.id for o in filter_orders(self.orders, "omar")], [34])

    def test_id_substring(self):
        self.assertEqual([o.id for o in filter_orders(self.orders, "3")], [34])

    def test_phone_digits(self):
        # numeric queries also match the phone with punctuation stripped
        self.assertEqual([o.id for o in filter_orders(self.orders, "55")], [12])
        self.assertEqual([o.id for o in filter_orders(self.orders, "1005551")], [12])

    def test_no_match(self):
        self.assertEqual(filter_orders(self.orders, "zzz"), [])


class WeightTestCase(unittest.TestCase):
    def test_valid(self):
        self.assertEqual(parse_weight(" 2.5 "), 2.5)

    def test_invalid(self):
        for text in ("", "abc", "0", "-1", "nan", "inf"):
            with self.subTest(text=text):
                with self.assertRaises(ValidationFailure):
                    parse_weight(text)


class OrderWorkflowTestCase(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.api = FakeOrderApi([make_order(1), make_order(2, "shipped")])
        self.opened = []
        self.workflow = OrderWorkflow(self.api, opener=self.opened.append)
        await self.workflow.load()

    async def test_approve_with_link_opens_it(self):
        self.api.link = "https://wa.me/201005551234"
        outcome = await self.workflow.approve(self.workflow.get(1), 1.2)
        self.assertEqual(self.api.calls, [("approve", 1, 1.2)])
        self.assertEqual(self.workflow.get(1).status, "shipped")
        self.assertTrue(outcome.notified)
        self.assertTrue(outcome.link_opened)
        self.assertEqual(self.opened, ["https://wa.me/201005551234"])
        self.assertEqual(outcome.message, "Order #1 approved. Customer notified via WhatsApp.")
        self.assertIsNone(self.workflow.updating_id)

    async def test_approve_bare_response_is_not_notified(self):
        outcome = await self.workflow.approve(self.workflow.get(1), 1.0)
        self.assertFalse(outcome.notified)
        self.assertEqual(self.opened, [])
        self.assertEqual(outcome.message, "Order #1 approved. Customer was not notified.")

    async def test_cancel_replaces_order(self):
        outcome = await self.workflow.cancel(self.workflow.get(2))
        self.assertEqual(outcome.order.status, "cancelled")
        self.assertEqual([o.status for o in self.workflow.orders], ["pending", "cancelled"])

    async def test_change_status(self):
        updated = await self.workflow.change_status(self.workflow.get(2), "delivered")
        self.assertEqual(updated.status, "delivered")
        self.assertEqual(self.workflow.get(2).status, "delivered")

    async def test_invalid_transitions_never_reach_backend(self):
        with self.assertRaises(InvalidTransition):
            await self.workflow.approve(self.workflow.get(2), 1.0)
        with self.assertRaises(InvalidTransition):
            await self.workflow.change_status(self.workflow.get(2), "shipped")
        self.assertEqual(self.api.calls, [])

    async def test_failure_leaves_list_unchanged(self):
        before = list(self.workflow.orders)
        self.api.fail_with = NetworkFailure("Failed to approve order", 500)
        with self.assertRaises(NetworkFailure):
            await self.workflow.approve(self.workflow.get(1), 1.0)
        self.assertEqual(self.workflow.orders, before)
        self.assertIsNone(self.workflow.updating_id)

    async def test_second_order_is_rejected_while_busy(self):
        self.api.gate = asyncio.Event()
        first = asyncio.create_task(self.workflow.cancel(self.workflow.get(1)))
        await asyncio.sleep(0)
        self.assertTrue(self.workflow.is_updating(1))

        with self.assertRaises(OrderBusy):
            await self.workflow.cancel(self.workflow.get(2))

        self.api.gate.set()
        await first
        self.assertIsNone(self.workflow.updating_id)
        self.assertEqual(self.api.calls, [("cancel", 1)])

    async def test_reload_fetched_before_approval_does_not_revert_it(self):
        self.api.gate = asyncio.Event()
        self.api.list_gate = asyncio.Event()
        reload = asyncio.create_task(self.workflow.load())
        await asyncio.sleep(0)
        approve = asyncio.create_task(self.workflow.approve(self.workflow.get(1), 2.0))
        await asyncio.sleep(0)

        self.api.gate.set()
        await approve
        self.api.list_gate.set()
        await reload

        self.assertEqual(self.workflow.get(1).status, "shipped")
        self.assertFalse(can_approve(self.workflow.get(1)))

    async def test_reload_is_skipped_while_an_order_is_in_flight(self):
        self.api.gate = asyncio.Event()
        approve = asyncio.create_task(self.workflow.approve(self.workflow.get(1), 2.0))
        await asyncio.sleep(0)
        self.assertTrue(self.workflow.busy)

        calls_before = self.api.list_calls
        await self.workflow.load()
        self.assertEqual(self.api.list_calls, calls_before)

        self.api.gate.set()
        await approve
        await self.workflow.load()
        self.assertEqual(self.api.list_calls, calls_before + 1)
        self.assertFalse(self.workflow.busy)

    async def test_opener_failure_does_not_fail_action(self):
        def broken_opener(link):
            raise RuntimeError("no browser")

        self.workflow.opener = broken_opener
        self.api.link = "https://wa.me/1"
        outcome = await self.workflow.approve(self.workflow.get(1), 3.0)
        self.assertTrue(outcome.notified)
        self.assertFalse(outcome.link_opened)
        self.assertEqual(self.workflow.get(1).status, "shipped")


if __name__ == "__main__":
    unittest.main()
