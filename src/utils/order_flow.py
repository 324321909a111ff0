# order status lifecycle: which actions an order offers, and running them
from __future__ import annotations

import math
import webbrowser
from dataclasses import dataclass
from typing import Callable, List, Optional, Protocol, Sequence, Tuple

from api.errors import ValidationFailure
from api.models import ORDER_STATUSES, Order, OrderResult
from utils.logger import get_logger

_logger = get_logger(__name__)

TERMINAL_STATUSES = frozenset({"delivered", "cancelled"})
CANCELLABLE_STATUSES = frozenset({"pending", "processing", "shipped"})

# These rules only decide what the UI offers; the backend enforces its own.


def is_terminal(order: Order) -> bool:
    return order.status in TERMINAL_STATUSES


def can_approve(order: Order) -> bool:
    return order.status == "pending"


def can_cancel(order: Order) -> bool:
    return order.status in CANCELLABLE_STATUSES


def available_actions(order: Order) -> Tuple[str, ...]:
    actions = []
    if can_approve(order):
        actions.append("approve")
    if can_cancel(order):
        actions.append("cancel")
    return tuple(actions)


def manual_targets(order: Order) -> Tuple[str, ...]:
    """Statuses selectable from the manual status picker."""
    if is_terminal(order):
        return ()
    return tuple(s for s in ORDER_STATUSES if s != order.status)


def _digits(text: str) -> str:
    return "".join(c for c in text if c.isdigit())


def order_matches(order: Order, query: str) -> bool:
    """
    Name matches case-insensitively, id and phone as plain substrings.
    A numeric query also matches the phone with its punctuation stripped.
    """
    if query.lower() in order.customer_name.lower():
        return True
    if query in str(order.id):
        return True
    if query in order.customer_phone:
        return True
    return query.isdigit() and query in _digits(order.customer_phone)


def filter_orders(orders: Sequence[Order], query: str) -> List[Order]:
    query = (query or "").strip()
    if not query:
        return list(orders)
    return [o for o in orders if order_matches(o, query)]


def replace_order(orders: Sequence[Order], updated: Order) -> List[Order]:
    return [updated if o.id == updated.id else o for o in orders]


def parse_weight(text: str) -> float:
    """Package weight in kg; required, no default."""
    text = (text or "").strip()
    if not text:
        raise ValidationFailure("Weight is required.", field="weight")
    try:
        weight = float(text)
    except ValueError:
        raise ValidationFailure("Weight must be a number.", field="weight") from None
    if not math.isfinite(weight) or weight <= 0:
        raise ValidationFailure("Weight must be greater than 0 kg.", field="weight")
    return weight


class InvalidTransition(ValueError):
    pass


class OrderBusy(RuntimeError):
    """Another order of the same view is still being updated."""


class OrderApi(Protocol):
    async def get_orders(self) -> List[Order]: ...

    async def update_order_status(self, order_id: int, status: str) -> Order: ...

    async def approve_order(self, order_id: int, weight: float) -> OrderResult: ...

    async def cancel_order(self, order_id: int) -> OrderResult: ...


@dataclass(frozen=True)
class WorkflowOutcome:
    action: str  # "approve" or "cancel"
    order: Order
    link: Optional[str] = None
    link_opened: bool = False

    @property
    def notified(self) -> bool:
        return bool(self.link)

    @property
    def message(self) -> str:
        verb = "approved" if self.action == "approve" else "cancelled"
        if self.notified:
            return f"Order #{self.order.id} {verb}. Customer notified via WhatsApp."
        return f"Order #{self.order.id} {verb}. Customer was not notified."


class OrderWorkflow:
    """
    Per-view order state: the fetched list plus the id currently being mutated.

    Only one order may be in flight at a time. Failed calls leave the list
    untouched and re-raise so the view can show the error.

    A reload never overwrites a mutation: it is skipped while an order is in
    flight, and its result is dropped if a mutation started during the fetch.
    """

    def __init__(
        self,
        client: OrderApi,
        opener: Callable[[str], object] = webbrowser.open,
    ) -> None:
        self.client = client
        self.opener = opener
        self.orders: List[Order] = []
        self.updating_id: Optional[int] = None
        self._generation = 0

    @property
    def busy(self) -> bool:
        return self.updating_id is not None

    def is_updating(self, order_id: int) -> bool:
        return self.updating_id == order_id

    def get(self, order_id: int) -> Optional[Order]:
        for o in self.orders:
            if o.id == order_id:
                return o
        return None

    def filtered(self, query: str) -> List[Order]:
        return filter_orders(self.orders, query)

    async def load(self) -> List[Order]:
        if self.busy:
            _logger.debug(f"reload skipped, order {self.updating_id} in flight")
            return self.orders
        generation = self._generation
        orders = await self.client.get_orders()
        if self.busy or generation != self._generation:
            _logger.debug("dropping order list fetched before the last update")
            return self.orders
        self.orders = orders
        return self.orders

    def _begin(self, order: Order) -> None:
        if self.busy:
            raise OrderBusy(f"Order #{self.updating_id} is still being updated.")
        self.updating_id = order.id
        self._generation += 1

    def _apply(self, updated: Order) -> None:
        self.orders = replace_order(self.orders, updated)

    async def change_status(self, order: Order, status: str) -> Order:
        if status not in manual_targets(order):
            raise InvalidTransition(
                f"Order #{order.id} can't move from {order.status} to {status}."
            )
        self._begin(order)
        try:
            updated = await self.client.update_order_status(order.id, status)
        finally:
            self.updating_id = None
        self._apply(updated)
        _logger.info(f"order {order.id}: {order.status} -> {updated.status}")
        return updated

    async def approve(self, order: Order, weight: float) -> WorkflowOutcome:
        if not can_approve(order):
            raise InvalidTransition(f"Only pending orders can be approved (#{order.id}).")
        self._begin(order)
        try:
            result = await self.client.approve_order(order.id, weight)
        finally:
            self.updating_id = None
        return self._finish("approve", result)

    async def cancel(self, order: Order) -> WorkflowOutcome:
        if not can_cancel(order):
            raise InvalidTransition(f"Order #{order.id} can't be cancelled.")
        self._begin(order)
        try:
            result = await self.client.cancel_order(order.id)
        finally:
            self.updating_id = None
        return self._finish("cancel", result)

    def _finish(self, action: str, result: OrderResult) -> WorkflowOutcome:
        self._apply(result.order)
        _logger.info(
            f"order {result.order.id} {action}: status={result.order.status}, "
            f"response={result.kind}"
        )
        opened = False
        if result.whatsapp_link:
            opened = self._open_link(result.whatsapp_link)
        return WorkflowOutcome(action, result.order, result.whatsapp_link, opened)

    def _open_link(self, link: str) -> bool:
        # failing to open the link must not fail the approval itself
        try:
            return self.opener(link) is not False
        except Exception as e:
            _logger.warning(f"could not open notification link {link}: {e!r}")
            return False
