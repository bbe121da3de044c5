"""Tests for primary/backup payment session creation."""

import pytest
from payments.gateway import build_fake_registry
from payments.gateway.errors import GatewayFallbackFailed, ProviderCallFailed, UnsupportedGateway
from payments.gateway.fake_adapter import FakeGateway
from payments.gateway.fallback import create_with_fallback
from payments.gateway.port import PaymentRequest

REQUEST = PaymentRequest(order_id="O1", amount=50000, customer_name="Budi")


@pytest.fixture()
def registry():
    return build_fake_registry()


class CrashingGateway(FakeGateway):
    """Blows up with a non-gateway error, like an adapter reading a malformed body."""

    def create_payment(self, request):
        self.calls.append({"method": "create_payment", "order_id": request.order_id})
        raise AttributeError("'str' object has no attribute 'get'")


class TestFallback:
    def test_primary_success_never_touches_backup(self, registry):
        session = create_with_fallback(registry, "pakasir", "ipaymu", REQUEST)

        assert session.provider == "pakasir"
        assert registry.get("ipaymu").calls == []

    def test_backup_used_once_when_primary_fails(self, registry):
        registry.get("pakasir").configure(should_succeed=False)

        session = create_with_fallback(registry, "pakasir", "ipaymu", REQUEST)

        assert session.provider == "ipaymu"
        assert len(registry.get("pakasir").calls) == 1
        assert len(registry.get("ipaymu").calls) == 1

    def test_both_failing_raises_combined_error(self, registry):
        registry.get("pakasir").configure(should_succeed=False, failure_reason="QRIS down")
        registry.get("ipaymu").configure(should_succeed=False, failure_reason="Signature rejected")

        with pytest.raises(GatewayFallbackFailed) as exc:
            create_with_fallback(registry, "pakasir", "ipaymu", REQUEST)

        assert str(exc.value) == "Both pakasir and ipaymu failed"
        assert exc.value.primary_error.reason == "QRIS down"
        assert exc.value.backup_error.reason == "Signature rejected"
        # One attempt each, no further hops
        assert len(registry.get("pakasir").calls) == 1
        assert len(registry.get("ipaymu").calls) == 1
        assert registry.get("tokopay").calls == []

    def test_no_backup_reraises_primary_error(self, registry):
        registry.get("tokopay").configure(should_succeed=False, failure_reason="Merchant suspended")

        with pytest.raises(ProviderCallFailed) as exc:
            create_with_fallback(registry, "tokopay", None, REQUEST)

        assert not isinstance(exc.value, GatewayFallbackFailed)
        assert exc.value.reason == "Merchant suspended"

    def test_unsupported_backup_fails_before_any_call(self, registry):
        with pytest.raises(UnsupportedGateway):
            create_with_fallback(registry, "pakasir", "midtrans", REQUEST)
        assert registry.get("pakasir").calls == []

    def test_unsupported_primary(self, registry):
        with pytest.raises(UnsupportedGateway):
            create_with_fallback(registry, "stripe", "ipaymu", REQUEST)
        assert registry.get("ipaymu").calls == []

    def test_backup_used_when_primary_crashes(self, registry):
        registry.register(CrashingGateway("pakasir"))

        session = create_with_fallback(registry, "pakasir", "ipaymu", REQUEST)

        assert session.provider == "ipaymu"
        assert len(registry.get("pakasir").calls) == 1

    def test_crash_on_both_sides_raises_combined_error(self, registry):
        registry.register(CrashingGateway("pakasir"))
        registry.register(CrashingGateway("ipaymu"))

        with pytest.raises(GatewayFallbackFailed) as exc:
            create_with_fallback(registry, "pakasir", "ipaymu", REQUEST)

        assert exc.value.primary_error.provider == "pakasir"
        assert "has no attribute" in exc.value.backup_error.reason

    def test_crash_without_backup_is_a_provider_failure(self, registry):
        registry.register(CrashingGateway("tokopay"))

        with pytest.raises(ProviderCallFailed) as exc:
            create_with_fallback(registry, "tokopay", None, REQUEST)

        assert exc.value.provider == "tokopay"
