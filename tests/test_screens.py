import asyncio
import os
import sys
import unittest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
src_path = os.path.join(ROOT, "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from textual.app import App
from textual.widgets import Button, DataTable, Input, Label, Select

from api.models import AdminProfile, Order, OrderResult
from utils.state import SessionState
from views.modal_dialog import ConfirmDialogModal
from views.modal_weight import WeightModal
from views.scr_orders import OrdersScreen
from views.scr_settings import SettingsScreen

STYLES = os.path.join(src_path, "views", "styles")


def make_order(oid, status):
    return Order.from_json(
        {
            "id": oid,
            "customer_name": f"Customer {oid}",
            "customer_phone": f"0100{oid}",
            "customer_address": "",
            "items_summary": "Blanket x1",
            "total_price": 100,
            "status": status,
        }
    )


class FakeApi:
    def __init__(self):
        self.orders = [make_order(1, "pending"), make_order(2, "delivered"), make_order(3, "cancelled")]
        self.approve_gate = asyncio.Event()
        self.list_calls = 0
        self.profile_calls = 0
        self.profile = AdminProfile(1, "admin@example.com", "Store Admin", None, "admin")

    async def get_orders(self):
        self.list_calls += 1
        return list(self.orders)

    async def approve_order(self, order_id, weight):
        await self.approve_gate.wait()
        shipped = make_order(order_id, "shipped")
        self.orders = [shipped if o.id == order_id else o for o in self.orders]
        return OrderResult.decode({"order": {"id": order_id, "status": "shipped"}})

    async def get_admin_profile(self):
        self.profile_calls += 1
        return self.profile


class ScreenHarness(App):
    """Starts in a single mode with a fake api and a signed-in session."""

    CSS_PATH = [
        os.path.join(STYLES, "index.tcss"),
        os.path.join(STYLES, "dialogs.tcss"),
        os.path.join(STYLES, "orders.tcss"),
        os.path.join(STYLES, "settings.tcss"),
    ]

    def __init__(self, api):
        super().__init__()
        self.api = api
        self.state = SessionState(token="tok")

    async def on_mount(self):
        await self.switch_mode(next(iter(self.MODES)))


class OrdersHarness(ScreenHarness):
    MODES = {"orders": OrdersScreen}
    MENU = {"orders": "Orders"}


class SettingsHarness(ScreenHarness):
    MODES = {"settings": SettingsScreen}
    MENU = {"settings": "Settings"}


async def settle(app, pilot):
    await pilot.pause()
    await app.workers.wait_for_complete()
    await pilot.pause()


class OrdersScreenTestCase(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.api = FakeApi()
        self.app = OrdersHarness(self.api)

    async def test_terminal_orders_offer_no_actions(self):
        async with self.app.run_test(size=(160, 50)) as pilot:
            await settle(self.app, pilot)
            screen = self.app.screen
            self.assertFalse(screen.query_one("#btn-approve", Button).disabled)

            table = screen.query_one(DataTable)
            for row in (1, 2):
                table.move_cursor(row=row)
                await pilot.pause()
                self.assertEqual(screen.selected_id, row + 1)
                self.assertTrue(screen.query_one("#btn-approve", Button).disabled)
                self.assertTrue(screen.query_one("#btn-cancel", Button).disabled)
                self.assertTrue(screen.query_one("#select-status", Select).disabled)

    async def test_unmatched_search_shows_empty_state(self):
        async with self.app.run_test(size=(160, 50)) as pilot:
            await settle(self.app, pilot)
            screen = self.app.screen
            screen.query_one("#input-order-search", Input).value = "zzz"
            await pilot.pause()

            self.assertEqual(screen.query_one(DataTable).row_count, 0)
            label = screen.query_one("#label-orders-empty", Label)
            self.assertIn("No orders found", str(label.render()))
            self.assertFalse(label.has_class("hidden"))

    async def test_actions_locked_while_approval_in_flight(self):
        async with self.app.run_test(size=(160, 50)) as pilot:
            await settle(self.app, pilot)
            screen = self.app.screen

            screen.query_one("#btn-approve", Button).press()
            await pilot.pause()
            self.assertIsInstance(self.app.screen, WeightModal)
            await pilot.press("2", "enter")
            await pilot.pause()
            await pilot.pause()

            self.assertTrue(screen.workflow.is_updating(1))
            self.assertTrue(screen.query_one("#div-order-actions").loading)
            for button in screen.query("#div-order-actions Button").results(Button):
                self.assertTrue(button.disabled, button.id)
            self.assertTrue(screen.query_one("#select-status", Select).disabled)

            self.api.approve_gate.set()
            await settle(self.app, pilot)

            self.assertFalse(screen.workflow.busy)
            self.assertFalse(screen.query_one("#div-order-actions").loading)
            self.assertEqual(screen.workflow.get(1).status, "shipped")
            self.assertTrue(screen.query_one("#btn-approve", Button).disabled)
            self.assertFalse(screen.query_one("#btn-cancel", Button).disabled)


class SettingsScreenTestCase(unittest.IsolatedAsyncioTestCase):
    async def test_closing_a_dialog_keeps_unsaved_edits(self):
        api = FakeApi()
        app = SettingsHarness(api)
        async with app.run_test(size=(160, 50)) as pilot:
            await settle(app, pilot)
            screen = app.screen
            email = screen.query_one("#input-email", Input)
            self.assertEqual(email.value, "admin@example.com")
            self.assertEqual(api.profile_calls, 1)

            email.value = "edited@example.com"
            app.push_screen(ConfirmDialogModal("Are you sure you want to log out?"))
            await pilot.pause()
            await app.pop_screen()
            await settle(app, pilot)

            self.assertIs(app.screen, screen)
            self.assertEqual(email.value, "edited@example.com")
            self.assertEqual(api.profile_calls, 1)

            screen.action_reload()
            await settle(app, pilot)
            self.assertEqual(email.value, "admin@example.com")
            self.assertEqual(api.profile_calls, 2)


if __name__ == "__main__":
    unittest.main()
