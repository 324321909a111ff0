# dataclass models decoded from backend payloads
from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Tuple

from api.errors import ApiError

ORDER_STATUSES: Tuple[str, ...] = (
    "pending",
    "processing",
    "shipped",
    "delivered",
    "cancelled",
)


def _opt_str(val: Any) -> Optional[str]:
    if val is None:
        return None
    val = str(val)
    return val or None


def _parse_datetime(val: Any) -> Optional[datetime]:
    if not val:
        return None
    try:
        return datetime.fromisoformat(str(val))
    except ValueError:
        return None


@dataclass(frozen=True)
class Address:
    """
    Customer address. The backend stores it as a JSON string; when that string
    can't be decoded into an object, structured is False and only raw is usable.
    """

    raw: str
    structured: bool = False
    street: str = ""
    local_area: str = ""
    city: str = ""
    postal_code: str = ""
    province: str = ""

    @classmethod
    def parse(cls, raw: Any) -> Address:
        raw = "" if raw is None else str(raw)
        try:
            data = json.loads(raw)
        except ValueError:
            return cls(raw=raw)
        if not isinstance(data, dict):
            return cls(raw=raw)
        return cls(
            raw=raw,
            structured=True,
            street=str(data.get("street") or ""),
            local_area=str(data.get("local_area") or ""),
            city=str(data.get("city") or ""),
            postal_code=str(data.get("postal_code") or ""),
            province=str(data.get("province") or ""),
        )

    def one_line(self) -> str:
        if not self.structured:
            return self.raw
        parts = [
            self.street,
            self.local_area,
            self.city,
            self.province,
            self.postal_code,
        ]
        return ", ".join(p for p in parts if p)


@dataclass(frozen=True)
class Order:
    id: int
    customer_name: str
    customer_phone: str
    customer_address: Address
    items_summary: str
    total_price: float
    receipt_url: Optional[str]
    status: str  # one of ORDER_STATUSES
    created_at: Optional[datetime]

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> Order:
        try:
            status = str(data.get("status") or "").lower()
            if status not in ORDER_STATUSES:
                raise ValueError(f"unknown status {data.get('status')!r}")
            return cls(
                id=int(data["id"]),
                customer_name=str(data.get("customer_name") or ""),
                customer_phone=str(data.get("customer_phone") or ""),
                customer_address=Address.parse(data.get("customer_address")),
                items_summary=str(data.get("items_summary") or ""),
                total_price=float(data.get("total_price") or 0),
                receipt_url=_opt_str(data.get("receipt_url")),
                status=status,
                created_at=_parse_datetime(data.get("created_at")),
            )
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise ApiError(f"Malformed order payload: {e}") from e

    @property
    def items(self) -> List[str]:
        return [i.strip() for i in self.items_summary.split(",") if i.strip()]


@dataclass(frozen=True)
class Product:
    id: int
    name: str
    price: float
    category: str
    description: str
    image_url: Optional[str] = None
    gallery: Tuple[str, ...] = ()

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> Product:
        try:
            return cls(
                id=int(data["id"]),
                name=str(data.get("name") or ""),
                price=float(data.get("price") or 0),
                category=str(data.get("category") or ""),
                description=str(data.get("description") or ""),
                image_url=_opt_str(data.get("image_url")),
                gallery=tuple(str(u) for u in (data.get("gallery") or []) if u),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ApiError(f"Malformed product payload: {e}") from e

    @property
    def display_gallery(self) -> Tuple[str, ...]:
        if self.gallery:
            return self.gallery
        if self.image_url:
            return (self.image_url,)
        return ()


@dataclass(frozen=True)
class AdminProfile:
    id: int
    email: str
    full_name: Optional[str]
    whatsapp_number: Optional[str]
    role: str

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> AdminProfile:
        try:
            return cls(
                id=int(data["id"]),
                email=str(data.get("email") or ""),
                full_name=_opt_str(data.get("full_name")),
                whatsapp_number=_opt_str(data.get("whatsapp_number")),
                role=str(data.get("role") or "admin"),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ApiError(f"Malformed profile payload: {e}") from e


@dataclass(frozen=True)
class OrderResult:
    """
    Result of approve/cancel calls. The backend answers either with the bare
    updated order or with an envelope {order, user_whatsapp_link}.
    """

    order: Order
    kind: Literal["envelope", "bare"]
    whatsapp_link: Optional[str] = None

    @classmethod
    def decode(cls, payload: Any) -> OrderResult:
        if not isinstance(payload, dict):
            raise ApiError("Unexpected order response from server")
        envelope = payload.get("order")
        if isinstance(envelope, dict):
            return cls(
                order=Order.from_json(envelope),
                kind="envelope",
                whatsapp_link=_opt_str(payload.get("user_whatsapp_link")),
            )
        return cls(order=Order.from_json(payload), kind="bare")

    @property
    def notified(self) -> bool:
        return bool(self.whatsapp_link)


@dataclass(frozen=True)
class Kpi:
    label: str
    value: str
    trend: str
    trend_direction: str  # "up" or "down"


@dataclass(frozen=True)
class ChartPoint:
    name: str
    value: float


@dataclass(frozen=True)
class RecentOrder:
    id: str
    customer: str
    date: str
    amount: str
    status: str


@dataclass(frozen=True)
class Analytics:
    kpis: Tuple[Kpi, ...] = ()
    revenue_history: Tuple[ChartPoint, ...] = ()
    order_status_distribution: Tuple[ChartPoint, ...] = ()
    recent_orders: Tuple[RecentOrder, ...] = ()
    total_active_orders: int = 0

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> Analytics:
        if not isinstance(data, dict):
            raise ApiError("Unexpected analytics response from server")

        def points(key: str) -> Tuple[ChartPoint, ...]:
            return tuple(
                ChartPoint(name=str(p.get("name", "")), value=float(p.get("value") or 0))
                for p in data.get(key) or []
            )

        try:
            return cls(
                kpis=tuple(
                    Kpi(
                        label=str(k.get("label", "")),
                        value=str(k.get("value", "")),
                        trend=str(k.get("trend", "")),
                        trend_direction=str(k.get("trend_direction", "")),
                    )
                    for k in data.get("kpis") or []
                ),
                revenue_history=points("revenue_history"),
                order_status_distribution=points("order_status_distribution"),
                recent_orders=tuple(
                    RecentOrder(
                        id=str(o.get("id", "")),
                        customer=str(o.get("customer", "")),
                        date=str(o.get("date", "")),
                        amount=str(o.get("amount", "")),
                        status=str(o.get("status", "")),
                    )
                    for o in data.get("recent_orders") or []
                ),
                total_active_orders=int(data.get("total_active_orders") or 0),
            )
        except (AttributeError, TypeError, ValueError) as e:
            raise ApiError(f"Malformed analytics payload: {e}") from e
