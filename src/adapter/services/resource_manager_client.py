"""Resource Manager HTTP Client

Bearer-token REST client for the server-side resource manager that enforces
per-user RAM/CPU limits and reports usage.

Endpoints (relative to base_url):
- GET    /servers/{server_id}/users/{id}/usage   -> {"ram_usage": MB, "cpu_usage": %}
- PUT    /servers/{server_id}/users/{id}/limits  <- {"cpu": %, "pmem": MB}
- POST   /servers/{server_id}/users              <- {"username", "cpu", "pmem"} -> {"id"}
- DELETE /servers/{server_id}/users/{id}
"""

import logging
from typing import Any, Optional
import httpx
from pydantic import ValidationError
from libs.result import Result, Return, Error
from src.app.services.resource_manager import ResourceUsageProvider, ProvisioningGateway
from src.domain.scaling_policy import ResourceUsage

logger = logging.getLogger(__name__)


class ResourceManagerClient(ResourceUsageProvider, ProvisioningGateway):
    """
    httpx client for the resource manager

    Every request is bounded by timeout seconds. Timeouts, transport errors,
    non-2xx responses and malformed bodies all come back as error Results.
    No retries.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        server_id: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.server_id = server_id
        self.timeout = timeout
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self.transport,
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
        )

    def _user_path(self, external_id: str) -> str:
        return f"/servers/{self.server_id}/users/{external_id}"

    async def _request(self, method: str, path: str, json: Optional[dict[str, Any]] = None) -> Result[httpx.Response]:
        try:
            async with self._client() as client:
                response = await client.request(method, path, json=json)
                response.raise_for_status()
                return Return.ok(response)
        except httpx.TimeoutException as e:
            logger.error(f"Resource manager {method} {path} timed out after {self.timeout}s")
            return Return.err(
                Error(
                    code="RESOURCE_MANAGER_TIMEOUT",
                    message=f"Resource manager did not answer within {self.timeout}s",
                    reason=str(e) or type(e).__name__,
                )
            )
        except httpx.HTTPStatusError as e:
            logger.error(f"Resource manager {method} {path} returned {e.response.status_code}: {e.response.text}")
            return Return.err(
                Error(
                    code="RESOURCE_MANAGER_ERROR",
                    message=f"Resource manager returned HTTP {e.response.status_code}",
                    reason=e.response.text,
                )
            )
        except httpx.HTTPError as e:
            logger.error(f"Resource manager {method} {path} failed: {e}")
            return Return.err(
                Error(
                    code="RESOURCE_MANAGER_UNAVAILABLE",
                    message="Resource manager unreachable",
                    reason=str(e),
                )
            )

    async def get_usage(self, external_id: str) -> Result[ResourceUsage]:
        response = await self._request("GET", f"{self._user_path(external_id)}/usage")
        if response.is_err():
            return Return.err(
                Error(
                    code="USAGE_NOT_AVAILABLE",
                    message=f"Usage for {external_id} not available",
                    reason=response.error.message,
                )
            )

        try:
            data = response.value.json()
            usage = ResourceUsage(
                ram_usage_mb=int(data["ram_usage"]),
                cpu_usage_percent=int(data["cpu_usage"]),
            )
        except (KeyError, ValueError, TypeError, ValidationError) as e:
            return Return.err(
                Error(
                    code="USAGE_NOT_AVAILABLE",
                    message=f"Malformed usage payload for {external_id}",
                    reason=str(e),
                )
            )

        return Return.ok(usage)

    async def set_limits(self, external_id: str, ram_mb: int, cpu_percent: int) -> Result[None]:
        response = await self._request(
            "PUT",
            f"{self._user_path(external_id)}/limits",
            json={"cpu": cpu_percent, "pmem": ram_mb},
        )
        if response.is_err():
            return Return.err(response.error)

        logger.info(f"Resource manager limits for {external_id} set to ram={ram_mb} MB, cpu={cpu_percent}%")
        return Return.ok()

    async def create_account(self, username: str, ram_mb: int, cpu_percent: int) -> Result[str]:
        response = await self._request(
            "POST",
            f"/servers/{self.server_id}/users",
            json={"username": username, "cpu": cpu_percent, "pmem": ram_mb},
        )
        if response.is_err():
            return Return.err(response.error)

        try:
            external_id = response.value.json().get("id")
        except (ValueError, AttributeError):
            external_id = None

        if not external_id:
            return Return.err(
                Error(
                    code="RESOURCE_MANAGER_ERROR",
                    message=f"Resource manager did not return an id for {username}",
                )
            )

        return Return.ok(str(external_id))

    async def delete_account(self, external_id: str) -> Result[None]:
        response = await self._request("DELETE", self._user_path(external_id))
        if response.is_err():
            return Return.err(response.error)
        return Return.ok()
