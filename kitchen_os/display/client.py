"""
HTTP client a kitchen terminal uses to talk to the server
"""

from typing import Any, Dict, List, Optional
import uuid

import httpx
import structlog

from kitchen_os.core.config import get_settings
from kitchen_os.display.errors import RequestRejected, TransientError
from kitchen_os.display.state import Ticket
from kitchen_os.models.order_item import ItemStatus

logger = structlog.get_logger(__name__)


class KdsClient:
    """Kitchen endpoints over ``httpx.AsyncClient``

    Transport failures, timeouts and 5xx responses raise ``TransientError``;
    4xx responses raise ``RequestRejected``.
    """

    def __init__(
        self,
        token: str,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.KDS_API_BASE_URL,
            headers={"Authorization": f"Bearer {token}"},
            timeout=timeout if timeout is not None else settings.KDS_FETCH_TIMEOUT_SECONDS,
            transport=transport,
        )

    async def __aenter__(self) -> "KdsClient":
        return self

    async def __aexit__(self, *exc_info):
        await self.close()

    async def close(self):
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            resp = await self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            logger.warning(f"{method} {path} timed out")
            raise TransientError(f"Request timed out: {method} {path}") from e
        except httpx.TransportError as e:
            logger.warning(f"{method} {path} failed: {e}")
            raise TransientError(f"Server unreachable: {e}") from e

        if resp.status_code >= 500:
            raise TransientError(f"Server error {resp.status_code}", status_code=resp.status_code)
        if resp.status_code >= 400:
            raise RequestRejected(resp.status_code, _detail(resp))
        return resp.json()

    async def list_active_tickets(self, station: Optional[str] = None) -> List[Ticket]:
        params = {"station": station} if station else None
        data = await self._request("GET", "/kds/orders", params=params)
        return [Ticket.from_json(entry) for entry in data]

    async def patch_item_status(self, item_id: str, status: ItemStatus) -> Dict[str, Any]:
        return await self._request(
            "PATCH", f"/order-items/{item_id}/status", json={"status": ItemStatus(status).value}
        )

    async def get_order(self, order_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/orders/{order_id}")

    async def my_open_orders(self) -> List[Dict[str, Any]]:
        return await self._request("GET", "/handover/my-orders")

    async def list_staff(self) -> List[Dict[str, Any]]:
        return await self._request("GET", "/staff")

    async def reassign(
        self,
        to_staff_id: str,
        order_ids: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {"to_staff_id": str(uuid.UUID(str(to_staff_id)))}
        if order_ids:
            body["order_ids"] = [str(order_id) for order_id in order_ids]
        return await self._request("POST", "/handover/reassign", json=body)


def _detail(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text or resp.reason_phrase
    if isinstance(body, dict) and "detail" in body:
        return str(body["detail"])
    return str(body)
