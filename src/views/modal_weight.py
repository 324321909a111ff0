from typing import Optional

from textual import events, on
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.validation import Number
from textual.widgets import Button, Input, Label

from api.errors import ValidationFailure
from api.models import Order
from utils.order_flow import parse_weight
from utils.pure import format_money


class WeightModal(ModalScreen[Optional[float]]):
    """
    Collects the package weight (kg) before approving a pending order.
    Returns the weight, or None if the admin backs out.
    """

    def __init__(self, order: Order) -> None:
        super().__init__()
        self._order = order

    def compose(self) -> ComposeResult:
        with Vertical(id="div-weight"):
            yield Label(
                f"Approve order #{self._order.id} for {self._order.customer_name} "
                f"({format_money(self._order.total_price)})",
                id="label-weight-title",
            )
            yield Label("Approving creates a shipment. Enter the package weight.")
            yield Label("Weight (kg)")
            yield Input(
                placeholder="e.g. 1.5",
                id="input-weight",
                type="number",
                validators=[Number(minimum=0.001)],
            )
            yield Label("", id="label-weight-error")
            with Horizontal(id="div-weight-btns"):
                yield Button("Cancel", id="btn-weight-cancel")
                yield Button("Approve & Ship", id="btn-weight-confirm", variant="success")

    def on_mount(self) -> None:
        self.query_one("#input-weight", Input).focus()

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(None)

    @on(Input.Submitted, "#input-weight")
    @on(Button.Pressed, "#btn-weight-confirm")
    def handle_confirm(self) -> None:
        weight_input = self.query_one("#input-weight", Input)
        try:
            weight = parse_weight(weight_input.value)
        except ValidationFailure as e:
            weight_input.add_class("-invalid")
            weight_input.focus()
            self.query_one("#label-weight-error", Label).update(e.message)
            return
        self.dismiss(weight)

    @on(Button.Pressed, "#btn-weight-cancel")
    def handle_cancel(self) -> None:
        self.dismiss(None)
