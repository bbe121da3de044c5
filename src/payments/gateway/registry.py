"""Gateway registry: gateway name to provider adapter.

The registry is built explicitly and handed to the services that need it,
so tests can register fakes under the real provider names.
"""

from collections.abc import Iterable

from payments.gateway.errors import UnsupportedGateway
from payments.gateway.port import PaymentGateway


class GatewayRegistry:
    def __init__(self, gateways: Iterable[PaymentGateway] = ()) -> None:
        self._gateways: dict[str, PaymentGateway] = {}
        for gateway in gateways:
            self.register(gateway)

    @staticmethod
    def _normalize(name: str | None) -> str:
        return (name or "").strip().lower()

    def register(self, gateway: PaymentGateway) -> None:
        self._gateways[self._normalize(gateway.name)] = gateway

    def get(self, name: str) -> PaymentGateway:
        """Return the gateway registered under ``name`` (case-insensitive)."""
        gateway = self._gateways.get(self._normalize(name))
        if gateway is None:
            raise UnsupportedGateway(name, self.supported())
        return gateway

    def supported(self) -> list[str]:
        return list(self._gateways)

    def is_supported(self, name: str) -> bool:
        return self._normalize(name) in self._gateways
