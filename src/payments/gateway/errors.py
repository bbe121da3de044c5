"""Errors raised by the payment gateway layer."""


class PaymentGatewayError(Exception):
    """Base class for payment gateway failures."""


class UnsupportedGateway(PaymentGatewayError):
    """The requested gateway name is not registered."""

    def __init__(self, gateway: str, supported: list[str]) -> None:
        self.gateway = gateway
        self.supported = supported
        super().__init__(f"Unsupported payment gateway: {gateway}. Supported gateways: {', '.join(supported)}")


class ProviderCallFailed(PaymentGatewayError):
    """A provider call failed: transport error, unexpected response or missing credentials."""

    def __init__(self, provider: str, reason: str) -> None:
        self.provider = provider
        self.reason = reason
        super().__init__(f"{provider}: {reason}")


class GatewayFallbackFailed(ProviderCallFailed):
    """Both the primary and the backup gateway failed to open a session."""

    def __init__(
        self,
        primary: str,
        backup: str,
        primary_error: ProviderCallFailed,
        backup_error: ProviderCallFailed,
    ) -> None:
        self.primary = primary
        self.backup = backup
        self.primary_error = primary_error
        self.backup_error = backup_error
        self.provider = backup
        self.reason = f"Both {primary} and {backup} failed"
        PaymentGatewayError.__init__(self, self.reason)
