"""Billing System HTTP Client

Client for the external billing system's action API: a single endpoint that
takes form-encoded POSTs with identifier/secret credentials and an action
name, and answers JSON with result == "success" on success.
"""

import logging
from decimal import Decimal
from typing import Any, Optional
import httpx
from libs.result import Result, Return, Error
from src.app.services.secondary_billing import SecondaryBillingSystem

logger = logging.getLogger(__name__)


class BillingSystemClient(SecondaryBillingSystem):
    def __init__(
        self,
        api_url: str,
        identifier: str,
        secret: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_url = api_url
        self.identifier = identifier
        self.secret = secret
        self.timeout = timeout
        self.transport = transport

    async def _call(self, action: str, params: dict[str, Any]) -> Result[dict[str, Any]]:
        form = {
            "identifier": self.identifier,
            "secret": self.secret,
            "action": action,
            "responsetype": "json",
            **{key: str(value) for key, value in params.items()},
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.api_url, data=form)
                response.raise_for_status()
                data = response.json()
        except httpx.TimeoutException as e:
            logger.error(f"Billing system {action} timed out after {self.timeout}s")
            return Return.err(
                Error(
                    code="BILLING_SYSTEM_TIMEOUT",
                    message=f"Billing system did not answer within {self.timeout}s",
                    reason=str(e) or type(e).__name__,
                )
            )
        except httpx.HTTPError as e:
            logger.error(f"Billing system {action} failed: {e}")
            return Return.err(
                Error(
                    code="BILLING_SYSTEM_UNAVAILABLE",
                    message=f"Billing system {action} request failed",
                    reason=str(e),
                )
            )
        except ValueError as e:
            return Return.err(
                Error(
                    code="BILLING_SYSTEM_ERROR",
                    message=f"Billing system {action} returned a non-JSON body",
                    reason=str(e),
                )
            )

        if not isinstance(data, dict) or data.get("result") != "success":
            message = data.get("message") if isinstance(data, dict) else None
            logger.error(f"Billing system {action} rejected: {data}")
            return Return.err(
                Error(
                    code="BILLING_SYSTEM_ERROR",
                    message=f"Billing system rejected {action}",
                    reason=message,
                )
            )

        return Return.ok(data)

    async def add_charge(self, client_id: str, amount: Decimal, description: str) -> Result[str]:
        response = await self._call(
            "CreateInvoice",
            {
                "userid": client_id,
                "itemdescription1": description,
                "itemamount1": Decimal(amount).quantize(Decimal("0.01")),
                "itemtaxed1": 1,
                "autoapplycredit": 1,
            },
        )
        if response.is_err():
            return Return.err(response.error)

        invoice_id = response.value.get("invoiceid")
        if invoice_id is None:
            return Return.err(
                Error(
                    code="BILLING_SYSTEM_ERROR",
                    message="Billing system did not return an invoice id",
                )
            )

        logger.info(f"Billing system invoice {invoice_id} created for client {client_id}: {amount}")
        return Return.ok(str(invoice_id))

    async def sync_resources(self, service_id: str, ram_mb: int, cpu_percent: int) -> Result[None]:
        response = await self._call(
            "UpdateClientProduct",
            {
                "serviceid": service_id,
                "customfields[RAM]": ram_mb,
                "customfields[CPU]": cpu_percent,
            },
        )
        if response.is_err():
            return Return.err(response.error)
        return Return.ok()
