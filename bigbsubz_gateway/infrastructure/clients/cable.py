"""Cable provider gateways used to activate a subscription on a smart card"""

import random
from decimal import Decimal
from typing import Protocol

import httpx

from bigbsubz_gateway.config import settings
from bigbsubz_gateway.domain.exceptions import ProviderError
from bigbsubz_gateway.domain.models import CablePackage


class CableProviderGateway(Protocol):
    async def subscribe(self, package: CablePackage, smart_card_number: str, reference: str) -> bool:
        """Return True when the provider activated the package.

        Raises:
            ProviderError: When the provider could not be reached
        """
        ...


class SimulatedCableProvider:
    """Stand-in provider that succeeds with a fixed probability"""

    def __init__(self, success_rate: float | None = None, rng: random.Random | None = None):
        self.success_rate = settings.cable_provider_success_rate if success_rate is None else success_rate
        self.rng = rng or random.Random()

    async def subscribe(self, package: CablePackage, smart_card_number: str, reference: str) -> bool:
        return self.rng.random() < self.success_rate


class HttpCableProvider:
    """Client for an external cable provider subscription API"""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.cable_provider_api_base).rstrip("/")
        self.timeout = timeout or settings.http_timeout_seconds
        self.transport = transport

    async def subscribe(self, package: CablePackage, smart_card_number: str, reference: str) -> bool:
        """
        Ask the provider to activate a package.

        A 2xx answer whose status is "success" counts as activated. Any other
        well-formed answer is a refusal.

        Raises:
            ProviderError: On timeout, HTTP errors, or invalid response
        """
        payload = {
            "provider": package.provider.code,
            "package_id": package.id,
            "package_name": package.name,
            "amount": str(Decimal(package.amount)),
            "smart_card_number": smart_card_number,
            "reference": reference,
        }
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.post(f"{self.base_url}/cable/subscriptions", json=payload)
                response.raise_for_status()
                data = response.json()
                return data["status"] == "success"

            except httpx.TimeoutException as e:
                raise ProviderError(f"Cable provider timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                raise ProviderError(f"Cable provider error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                raise ProviderError(f"Cable provider unreachable: {e}") from e
            except (KeyError, ValueError, TypeError) as e:
                raise ProviderError(f"Invalid response from cable provider: {e}") from e
