"""Primary/backup payment session creation.

The primary gateway is tried once. If it fails and a backup is configured,
the backup is tried once. There is never a second hop.
"""

import structlog

from payments.gateway.errors import GatewayFallbackFailed, ProviderCallFailed
from payments.gateway.port import PaymentGateway, PaymentRequest, PaymentSession
from payments.gateway.registry import GatewayRegistry

logger = structlog.get_logger(__name__)


def _open_session(gateway: PaymentGateway, request: PaymentRequest) -> PaymentSession:
    """Call ``gateway`` once, reporting any adapter crash as ``ProviderCallFailed``."""
    try:
        return gateway.create_payment(request)
    except ProviderCallFailed:
        raise
    except Exception as exc:
        raise ProviderCallFailed(gateway.name, str(exc) or exc.__class__.__name__) from exc


def create_with_fallback(
    registry: GatewayRegistry,
    primary: str,
    backup: str | None,
    request: PaymentRequest,
) -> PaymentSession:
    """Open a payment session, falling back to ``backup`` at most once.

    Both names are resolved before any provider is called, so an
    unsupported gateway name fails fast with ``UnsupportedGateway``.

    Raises:
        ProviderCallFailed: primary failed and no backup is configured.
        GatewayFallbackFailed: primary and backup both failed.
    """
    main = registry.get(primary)
    secondary = registry.get(backup) if backup else None

    try:
        return _open_session(main, request)
    except ProviderCallFailed as exc:
        logger.warning(
            "payment.primary_gateway_failed",
            gateway=main.name,
            order_id=request.order_id,
            error=str(exc),
        )
        if secondary is None:
            raise
        primary_error = exc

    logger.info("payment.retrying_with_backup", gateway=secondary.name, order_id=request.order_id)
    try:
        return _open_session(secondary, request)
    except ProviderCallFailed as exc:
        logger.error(
            "payment.backup_gateway_failed",
            gateway=secondary.name,
            order_id=request.order_id,
            error=str(exc),
        )
        raise GatewayFallbackFailed(primary, backup, primary_error, exc) from exc
