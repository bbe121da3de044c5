"""Payment gateway registry factory.

Provides get_registry() / set_registry() to swap implementations:
- Fake gateways (registered under the real provider names) for development and testing
- Pakasir, iPaymu, Tokopay and PayPal adapters when ``PAYMENT_GATEWAY_MODE=live``
"""

import os

from payments.gateway.registry import GatewayRegistry

PROVIDER_NAMES = ("pakasir", "ipaymu", "tokopay", "paypal")

_current_registry: GatewayRegistry | None = None


def build_live_registry(timeout: float | None = None) -> GatewayRegistry:
    """Registry of the real provider adapters, configured from the environment."""
    from payments.gateway.ipaymu_adapter import IpaymuGateway
    from payments.gateway.pakasir_adapter import PakasirGateway
    from payments.gateway.paypal_adapter import PayPalGateway
    from payments.gateway.tokopay_adapter import TokopayGateway
    from payments.gateway.transport import build_client

    return GatewayRegistry(
        [
            PakasirGateway(client=build_client(timeout)),
            IpaymuGateway(client=build_client(timeout)),
            TokopayGateway(client=build_client(timeout)),
            PayPalGateway(client=build_client(timeout)),
        ]
    )


def build_fake_registry() -> GatewayRegistry:
    from payments.gateway.fake_adapter import FakeGateway

    return GatewayRegistry(FakeGateway(name) for name in PROVIDER_NAMES)


def get_registry() -> GatewayRegistry:
    """Return the current gateway registry. Defaults to fakes."""
    global _current_registry
    if _current_registry is None:
        if os.getenv("PAYMENT_GATEWAY_MODE", "fake").lower() == "live":
            _current_registry = build_live_registry()
        else:
            _current_registry = build_fake_registry()
    return _current_registry


def set_registry(registry: GatewayRegistry) -> None:
    """Override the active registry (useful for tests)."""
    global _current_registry
    _current_registry = registry


def reset_registry() -> None:
    """Reset to the default registry."""
    global _current_registry
    _current_registry = None
