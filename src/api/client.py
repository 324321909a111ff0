# thin async client for the store backend, one method per endpoint
from __future__ import annotations

import asyncio
import json
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

import aiohttp

from api.errors import AccessDenied, LoginFailed, NetworkFailure
from api.models import (
    ORDER_STATUSES,
    AdminProfile,
    Analytics,
    Order,
    OrderResult,
    Product,
)
from utils import config
from utils.forms import ProductSubmission, UploadFile
from utils.logger import get_logger

_logger = get_logger(__name__)

TokenProvider = Callable[[], Optional[str]]


def _multipart(
    fields: Iterable[Tuple[str, str]], files: Iterable[UploadFile] = ()
) -> aiohttp.MultipartWriter:
    """Build a multipart/form-data body; uploads are sent under the "files" field."""
    writer = aiohttp.MultipartWriter("form-data")
    for name, value in fields:
        part = writer.append(value)
        part.set_content_disposition("form-data", name=name)
    for upload in files:
        part = writer.append(upload.content, {"Content-Type": upload.content_type})
        part.set_content_disposition("form-data", name="files", filename=upload.filename)
    return writer


def _error_detail(body: str) -> Optional[str]:
    try:
        data = json.loads(body)
    except ValueError:
        return None
    if isinstance(data, dict) and isinstance(data.get("detail"), str):
        return data["detail"]
    return None


class ApiClient:
    """
    Single point of HTTP access to the backend.

    Attaches the bearer token returned by token_provider (if any) to every
    request and raises NetworkFailure on transport errors or non-2xx replies.
    Nothing is retried or cached.
    """

    def __init__(
        self,
        base_url: str = config.API_BASE_URL,
        token_provider: Optional[TokenProvider] = None,
        timeout: float = config.API_TIMEOUT,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._token_provider = token_provider or (lambda: None)
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self) -> ApiClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    def _get_session(self) -> aiohttp.ClientSession:
        # created lazily so it binds to the running event loop
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self._session

    def _auth_header(self) -> Dict[str, str]:
        token = self._token_provider()
        return {"Authorization": f"Bearer {token}"} if token else {}

    async def _request(
        self, method: str, path: str, error_message: str, **kwargs
    ) -> Any:
        url = f"{self.base_url}{config.API_PREFIX}{path}"
        headers = {**self._auth_header(), **kwargs.pop("headers", {})}
        _logger.debug(f"{method} {path}")
        try:
            async with self._get_session().request(
                method, url, headers=headers, **kwargs
            ) as resp:
                body = await resp.text()
                status = resp.status
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            _logger.warning(f"{method} {path} failed: {e!r}")
            raise NetworkFailure(error_message, 0, str(e) or None) from e

        if not 200 <= status < 300:
            _logger.warning(f"{method} {path} -> {status}")
            raise NetworkFailure(error_message, status, _error_detail(body))

        if not body.strip():
            return None
        try:
            return json.loads(body)
        except ValueError as e:
            raise NetworkFailure(error_message, status, "invalid JSON in response") from e

    # ---------------------------
    # Auth
    # ---------------------------

    async def login(self, email: str, password: str) -> str:
        """Exchange admin credentials for an access token."""
        try:
            data = await self._request(
                "POST",
                "/auth/admin/login",
                "Login failed",
                data={"username": email, "password": password},
            )
        except NetworkFailure as e:
            if e.status == 403:
                raise AccessDenied("Access Denied: Admins Only", 403, e.detail) from e
            raise LoginFailed("Login failed", e.status, e.detail) from e

        token = data.get("access_token") if isinstance(data, dict) else None
        if not token:
            raise LoginFailed("Login failed", 200, "no access token in response")
        return token

    # ---------------------------
    # Orders
    # ---------------------------

    async def get_orders(self) -> List[Order]:
        data = await self._request("GET", "/admin/orders", "Failed to fetch orders")
        return [Order.from_json(o) for o in data or []]

    async def update_order_status(self, order_id: int, status: str) -> Order:
        if status not in ORDER_STATUSES:
            raise ValueError(f"Unknown order status: {status!r}")
        data = await self._request(
            "PUT",
            f"/admin/orders/{order_id}/status",
            "Failed to update status",
            json={"status": status},
        )
        return Order.from_json(data)

    async def approve_order(self, order_id: int, weight: float) -> OrderResult:
        data = await self._request(
            "POST",
            f"/admin/orders/{order_id}/approve",
            "Failed to approve order",
            data=_multipart([("weight", str(weight))]),
        )
        return OrderResult.decode(data)

    async def cancel_order(self, order_id: int) -> OrderResult:
        data = await self._request(
            "POST", f"/admin/orders/{order_id}/cancel", "Failed to cancel order"
        )
        return OrderResult.decode(data)

    # ---------------------------
    # Products
    # ---------------------------

    async def get_products(self) -> List[Product]:
        data = await self._request("GET", "/store/products", "Failed to fetch products")
        return [Product.from_json(p) for p in data or []]

    async def create_product(self, submission: ProductSubmission) -> Optional[Product]:
        data = await self._request(
            "POST",
            "/admin/products",
            "Failed to create product",
            data=_multipart(submission.form_fields(), submission.files),
        )
        return Product.from_json(data) if isinstance(data, dict) else None

    async def update_product(
        self, product_id: int, submission: ProductSubmission
    ) -> Optional[Product]:
        data = await self._request(
            "PUT",
            f"/admin/products/{product_id}",
            "Failed to update product",
            data=_multipart(submission.form_fields(), submission.files),
        )
        return Product.from_json(data) if isinstance(data, dict) else None

    async def delete_product(self, product_id: int) -> None:
        await self._request(
            "DELETE", f"/admin/products/{product_id}", "Failed to delete product"
        )

    # ---------------------------
    # Admin account & analytics
    # ---------------------------

    async def get_admin_profile(self) -> AdminProfile:
        data = await self._request("GET", "/admin/profile", "Failed to fetch profile")
        return AdminProfile.from_json(data)

    async def update_admin_settings(self, changes: Dict[str, Any]) -> AdminProfile:
        data = await self._request(
            "PUT", "/admin/settings", "Failed to update settings", json=changes
        )
        return AdminProfile.from_json(data)

    async def get_analytics(self) -> Analytics:
        data = await self._request(
            "GET", "/admin/analytics", "Failed to load analytics data"
        )
        return Analytics.from_json(data)
