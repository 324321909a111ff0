import webbrowser
from typing import List, Optional

from rich.text import Text
from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, Input, Label, MarkdownViewer, Select

from api.errors import ApiError
from api.models import ORDER_STATUSES, Order
from utils.order_flow import (
    InvalidTransition,
    OrderBusy,
    OrderWorkflow,
    WorkflowOutcome,
    available_actions,
    manual_targets,
)
from utils.pure import (
    format_date,
    format_money,
    markdown_table,
    status_badge,
    status_label,
    truncate,
)
from views.base_screen import BaseScreen
from views.modal_dialog import ConfirmDialogModal
from views.modal_weight import WeightModal


class OrdersScreen(BaseScreen):
    """
    Order management: searchable order table, detail pane, and the actions
    allowed for the highlighted order (approve, cancel, manual status change).
    """

    BINDINGS = [
        Binding("ctrl+r", "reload", "Refresh", show=True),
        Binding("ctrl+f", "focus_search", "Search", show=True),
    ]

    def __init__(self) -> None:
        super().__init__()
        self.workflow = OrderWorkflow(self.app.api)
        self.selected_id: Optional[int] = None
        self._query = ""

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical(id="div-orders"):
            yield Input(
                id="input-order-search",
                placeholder="Search by customer name, order id or phone...",
            )
            yield DataTable(id="table-orders")
            yield Label("", id="label-orders-empty")
            yield MarkdownViewer(id="md-order-detail", show_table_of_contents=False)
            with Horizontal(id="div-order-actions"):
                yield Button("Approve", id="btn-approve", variant="success")
                yield Button("Cancel Order", id="btn-cancel", variant="error")
                yield Select([], prompt="Change status", id="select-status")
                yield Button("Receipt", id="btn-receipt")
                yield Button("Refresh", id="btn-refresh")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Order", "Customer", "Phone", "Items", "Total", "Date", "Status")
        self._refresh_actions()

    @on(ScreenResume)
    @on(Button.Pressed, "#btn-refresh")
    def action_reload(self) -> None:
        self._load_orders()

    def action_focus_search(self) -> None:
        self.query_one("#input-order-search", Input).focus()

    @work(exclusive=True, group="orders")
    async def _load_orders(self) -> None:
        self.query_one(DataTable).loading = True
        try:
            await self.workflow.load()
        except ApiError as e:
            self.report_error(e, "Failed to load orders")
        finally:
            self.query_one(DataTable).loading = False
        self._render_table()

    @on(Input.Changed, "#input-order-search")
    def handle_search(self, event: Input.Changed) -> None:
        self._query = event.value
        self._render_table()

    def _render_table(self) -> None:
        orders = self.workflow.filtered(self._query)
        table = self.query_one(DataTable)
        table.clear()
        for o in orders:
            table.add_row(
                f"#{o.id}",
                o.customer_name,
                o.customer_phone,
                truncate(o.items_summary, 32),
                format_money(o.total_price),
                format_date(o.created_at),
                Text.from_markup(status_badge(o.status)),
                key=str(o.id),
            )

        empty_label = self.query_one("#label-orders-empty", Label)
        if not orders:
            empty_label.update("No orders found")
            empty_label.remove_class("hidden")
            self.selected_id = None
        else:
            empty_label.add_class("hidden")
            ids = [o.id for o in orders]
            if self.selected_id not in ids:
                self.selected_id = ids[0]
            table.move_cursor(row=ids.index(self.selected_id))

        self._render_detail(self._selected_order())
        self._refresh_actions()

    @on(DataTable.RowHighlighted, "#table-orders")
    def handle_row_highlight(self, event: DataTable.RowHighlighted) -> None:
        if event.row_key is None or event.row_key.value is None:
            return
        self.selected_id = int(event.row_key.value)
        self._render_detail(self._selected_order())
        self._refresh_actions()

    def _selected_order(self) -> Optional[Order]:
        if self.selected_id is None:
            return None
        return self.workflow.get(self.selected_id)

    def _render_detail(self, order: Optional[Order]) -> None:
        viewer = self.query_one("#md-order-detail", MarkdownViewer)
        if order is None:
            viewer.document.update("### No orders found")
            return

        address = order.customer_address
        address_text = address.one_line() or "-"
        if not address.structured and address.raw:
            address_text += " _(unstructured)_"

        customer = markdown_table(
            ["Customer", ""],
            [
                ["Name", order.customer_name],
                ["Phone", order.customer_phone],
                ["Address", address_text],
            ],
        )
        items: List[str] = [f"- {item}" for item in order.items] or ["- (none)"]
        md = (
            f"### Order #{order.id}: {status_label(order.status)}\n\n"
            f"Placed: {format_date(order.created_at)}  \n"
            f"Total: **{format_money(order.total_price)}**  \n"
            f"Receipt: {order.receipt_url or 'not uploaded'}\n\n"
            f"{customer}\n\n"
            "#### Items\n\n" + "\n".join(items)
        )
        viewer.document.update(md)

    def _refresh_actions(self) -> None:
        order = self._selected_order()
        busy = self.workflow.busy
        actions = available_actions(order) if order else ()
        targets = manual_targets(order) if order else ()

        self.query_one("#div-order-actions").loading = (
            order is not None and self.workflow.is_updating(order.id)
        )

        select = self.query_one("#select-status", Select)
        select.set_options([(status_label(s), s) for s in targets])
        select.disabled = busy or not targets
        self.query_one("#btn-approve", Button).disabled = busy or "approve" not in actions
        self.query_one("#btn-cancel", Button).disabled = busy or "cancel" not in actions
        self.query_one("#btn-receipt", Button).disabled = (
            busy or order is None or not order.receipt_url
        )
        self.query_one("#btn-refresh", Button).disabled = busy

    # ---------------------------
    # Actions
    # ---------------------------

    @on(Button.Pressed, "#btn-approve")
    @work(group="order-action")
    async def handle_approve(self) -> None:
        order = self._selected_order()
        if order is None:
            return
        weight = await self.app.push_screen_wait(WeightModal(order))
        if weight is None:
            return
        await self._run_action(self.workflow.approve(order, weight), "Failed to approve order")

    @on(Button.Pressed, "#btn-cancel")
    @work(group="order-action")
    async def handle_cancel(self) -> None:
        order = self._selected_order()
        if order is None:
            return
        if not await self.app.push_screen_wait(
            ConfirmDialogModal(
                f"Cancel order #{order.id}?",
                tone="error",
                detail="This also cancels any shipment already created for it.",
            )
        ):
            return
        await self._run_action(self.workflow.cancel(order), "Failed to cancel order")

    @on(Select.Changed, "#select-status")
    def handle_status_change(self, event: Select.Changed) -> None:
        # resetting the options posts a blank value, which is ignored here
        order = self._selected_order()
        if order is None or event.value not in ORDER_STATUSES:
            return
        if event.value != order.status:
            self._change_status(order, event.value)

    @work(group="order-action")
    async def _change_status(self, order: Order, status: str) -> None:
        await self._run_action(
            self.workflow.change_status(order, status), "Failed to update status"
        )

    @on(Button.Pressed, "#btn-receipt")
    def handle_receipt(self) -> None:
        order = self._selected_order()
        if order and order.receipt_url:
            webbrowser.open(order.receipt_url)

    async def _run_action(self, action, error_caption: str) -> None:
        # the workflow marks the order as updating as soon as the call starts
        self.call_after_refresh(self._refresh_actions)
        try:
            result = await action
        except (OrderBusy, InvalidTransition) as e:
            self.notify(str(e), severity="warning")
        except ApiError as e:
            self.report_error(e, error_caption)
        else:
            if isinstance(result, WorkflowOutcome):
                self.notify(result.message)
                if result.link and not result.link_opened:
                    self.notify(
                        f"Couldn't open the WhatsApp link: {result.link}",
                        severity="warning",
                        timeout=15,
                    )
            else:
                self.notify(f"Order #{result.id} is now {status_label(result.status)}.")
        self._render_table()
