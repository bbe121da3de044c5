"""Wire-level tests for the provider adapters, served by httpx.MockTransport."""

import hashlib
import hmac
import json

import httpx
import pytest
from payments.gateway.errors import ProviderCallFailed
from payments.gateway.ipaymu_adapter import IpaymuConfig, IpaymuGateway
from payments.gateway.pakasir_adapter import PakasirConfig, PakasirGateway
from payments.gateway.paypal_adapter import PayPalConfig, PayPalGateway
from payments.gateway.port import PaymentRequest, PaymentState
from payments.gateway.tokopay_adapter import TokopayConfig, TokopayGateway

REQUEST = PaymentRequest(
    order_id="O1",
    amount=50000,
    customer_name="Budi",
    customer_email="budi@example.com",
    return_url="https://shop.example.com/done",
)


class ProviderStub:
    """Answers requests by path and records every request it sees."""

    def __init__(self, routes):
        self.routes = routes
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status, body = self.routes[request.url.path]
        if isinstance(body, str):
            return httpx.Response(status, text=body)
        return httpx.Response(status, json=body)

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self))


def _md5(text):
    return hashlib.md5(text.encode()).hexdigest()  # noqa: S324


class TestPakasir:
    config = PakasirConfig(api_key="pk-key", project="digistore", api_url="https://pakasir.test/api")

    def test_create_payment(self):
        stub = ProviderStub(
            {
                "/api/transactioncreate/qris": (
                    200,
                    {
                        "payment": {
                            "order_id": "O1",
                            "amount": 50000,
                            "fee": 1003,
                            "total_payment": 51003,
                            "payment_number": "00020101021226",
                            "expired_at": "2025-01-01T10:00:00Z",
                        }
                    },
                )
            }
        )
        gateway = PakasirGateway(self.config, client=stub.client())

        session = gateway.create_payment(REQUEST)

        sent = json.loads(stub.requests[0].content)
        assert sent == {"project": "digistore", "order_id": "O1", "amount": 50000, "api_key": "pk-key"}
        assert session.provider == "pakasir"
        assert session.reference == "O1"
        assert session.qr_string == "00020101021226"
        assert session.fee == 1003
        assert session.total_payment == 51003
        assert session.expires_at.year == 2025

    def test_missing_credentials_fail_without_a_call(self):
        stub = ProviderStub({})
        gateway = PakasirGateway(PakasirConfig(), client=stub.client())

        with pytest.raises(ProviderCallFailed, match="not configured"):
            gateway.create_payment(REQUEST)
        assert stub.requests == []

    def test_error_message_is_surfaced(self):
        stub = ProviderStub({"/api/transactioncreate/qris": (400, {"message": "Invalid project"})})
        with pytest.raises(ProviderCallFailed, match="Invalid project"):
            PakasirGateway(self.config, client=stub.client()).create_payment(REQUEST)

    def test_non_json_response(self):
        stub = ProviderStub({"/api/transactioncreate/qris": (502, "<html>Bad Gateway</html>")})
        with pytest.raises(ProviderCallFailed, match="HTTP 502"):
            PakasirGateway(self.config, client=stub.client()).create_payment(REQUEST)

    def test_malformed_payment_object(self):
        stub = ProviderStub({"/api/transactioncreate/qris": (200, {"payment": "oops"})})
        with pytest.raises(ProviderCallFailed) as exc:
            PakasirGateway(self.config, client=stub.client()).create_payment(REQUEST)
        assert exc.value.provider == "pakasir"

    def test_malformed_status_is_pending(self):
        stub = ProviderStub({"/api/transactionstatus": (200, {"transaction": ["completed"]})})
        result = PakasirGateway(self.config, client=stub.client()).check_status("O1")
        assert result.status == PaymentState.PENDING

    def test_network_error(self):
        def unreachable(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = httpx.Client(transport=httpx.MockTransport(unreachable))
        with pytest.raises(ProviderCallFailed) as exc:
            PakasirGateway(self.config, client=client).create_payment(REQUEST)
        assert exc.value.provider == "pakasir"

    @pytest.mark.parametrize(
        "provider_status, expected",
        [
            ("completed", PaymentState.PAID),
            ("pending", PaymentState.PENDING),
            ("expired", PaymentState.EXPIRED),
            ("canceled", PaymentState.FAILED),
            ("something-new", PaymentState.PENDING),
        ],
    )
    def test_status_mapping(self, provider_status, expected):
        stub = ProviderStub({"/api/transactionstatus": (200, {"transaction": {"status": provider_status, "amount": 50000}})})

        result = PakasirGateway(self.config, client=stub.client()).check_status("O1")

        assert result.status == expected
        assert result.paid_amount == (50000 if expected == PaymentState.PAID else None)

    def test_callback(self):
        gateway = PakasirGateway(self.config, client=ProviderStub({}).client())
        payload = {"project": "digistore", "order_id": "O1", "status": "completed", "amount": "50000"}

        assert gateway.verify_callback(payload, {}) is True
        assert gateway.verify_callback({**payload, "project": "other"}, {}) is False

        data = gateway.parse_callback(payload)
        assert data.order_id == "O1"
        assert data.status == PaymentState.PAID
        assert data.amount == 50000


class TestIpaymu:
    config = IpaymuConfig(api_key="ip-key", va="1179000899", api_url="https://ipaymu.test/api/v2")

    def test_create_payment_is_signed(self):
        stub = ProviderStub(
            {
                "/api/v2/payment/direct": (
                    200,
                    {
                        "Status": 200,
                        "Data": {
                            "TransactionId": 4471,
                            "SessionId": "S-1",
                            "QrString": "000201",
                            "Url": "https://ipaymu.test/pay/S-1",
                            "Total": "50000",
                        },
                    },
                )
            }
        )
        gateway = IpaymuGateway(self.config, client=stub.client())

        session = gateway.create_payment(REQUEST)

        sent = stub.requests[0]
        body = sent.content.decode()
        expected = hmac.new(b"ip-key", ("1179000899" + body).encode(), hashlib.sha256).hexdigest()
        assert sent.headers["va"] == "1179000899"
        assert sent.headers["signature"] == expected
        assert json.loads(body)["referenceId"] == "O1"
        assert json.loads(body)["returnUrl"] == "https://shop.example.com/done"

        assert session.reference == "O1"
        assert session.transaction_id == "4471"
        assert session.session_id == "S-1"
        assert session.checkout_url == "https://ipaymu.test/pay/S-1"
        assert session.total_payment == 50000
        assert session.expires_at is not None

    def test_rejected_request(self):
        stub = ProviderStub({"/api/v2/payment/direct": (200, {"Status": 401, "Message": "unauthorized signature"})})
        with pytest.raises(ProviderCallFailed, match="unauthorized signature"):
            IpaymuGateway(self.config, client=stub.client()).create_payment(REQUEST)

    def test_status_check(self):
        stub = ProviderStub({"/api/v2/transaction": (200, {"Status": 200, "Data": {"Status": 1, "Amount": 50000}})})

        result = IpaymuGateway(self.config, client=stub.client()).check_status("4471")

        assert json.loads(stub.requests[0].content) == {"transactionId": "4471"}
        assert result.status == PaymentState.PAID
        assert result.paid_amount == 50000

    def test_callback(self):
        gateway = IpaymuGateway(self.config, client=ProviderStub({}).client())
        data = gateway.parse_callback({"reference_id": "O1", "status_code": "-2", "trx_id": 4471, "amount": "50000"})

        assert data.order_id == "O1"
        assert data.status == PaymentState.EXPIRED
        assert data.provider_ref == "4471"
        assert data.amount == 50000


class TestTokopay:
    config = TokopayConfig(merchant_id="M100", secret="tp-secret", api_url="https://tokopay.test/v1")

    def test_create_payment(self):
        stub = ProviderStub(
            {
                "/v1/order": (
                    200,
                    {
                        "status": "Success",
                        "data": {
                            "no_pembayaran": "NP-1",
                            "total_bayar": 50350,
                            "trx_id": "TP-9",
                            "qr_string": "000201",
                            "pay_url": "https://tokopay.test/pay/TP-9",
                        },
                    },
                )
            }
        )

        session = TokopayGateway(self.config, client=stub.client()).create_payment(REQUEST)

        sent = json.loads(stub.requests[0].content)
        assert sent["reff_id"] == "O1"
        assert sent["kode_channel"] == "QRGOPAY"
        assert sent["signature"] == _md5("M100:O1:50000:tp-secret")
        assert session.reference == "NP-1"
        assert session.transaction_id == "TP-9"
        assert session.total_payment == 50350

    def test_failure_status(self):
        stub = ProviderStub({"/v1/order": (200, {"status": "Failed", "message": "Saldo merchant kurang"})})
        with pytest.raises(ProviderCallFailed, match="Saldo merchant kurang"):
            TokopayGateway(self.config, client=stub.client()).create_payment(REQUEST)

    def test_malformed_data_object(self):
        stub = ProviderStub({"/v1/order": (200, {"status": "Success", "data": "NP-1"})})
        with pytest.raises(ProviderCallFailed):
            TokopayGateway(self.config, client=stub.client()).create_payment(REQUEST)

    def test_status_check_uses_signed_query(self):
        stub = ProviderStub({"/v1/order": (200, {"data": {"status": "Paid", "total_dibayar": 50000}})})

        result = TokopayGateway(self.config, client=stub.client()).check_status("O1")

        params = stub.requests[0].url.params
        assert stub.requests[0].method == "GET"
        assert params["signature"] == _md5("M100:O1:tp-secret")
        assert result.status == PaymentState.PAID
        assert result.paid_amount == 50000

    def test_callback_signature(self):
        gateway = TokopayGateway(self.config, client=ProviderStub({}).client())
        payload = {
            "reff_id": "O1",
            "status": "Success",
            "signature": _md5("M100:tp-secret:O1"),
            "data": {"reference": "NP-1", "total_dibayar": 50000},
        }

        assert gateway.verify_callback(payload, {}) is True
        assert gateway.verify_callback({**payload, "signature": "0" * 32}, {}) is False

        data = gateway.parse_callback(payload)
        assert data.order_id == "O1"
        assert data.status == PaymentState.PAID
        assert data.provider_ref == "NP-1"
        assert data.amount == 50000


class TestPayPal:
    config = PayPalConfig(client_id="pp-client", secret="pp-secret", base_url="https://shop.example.com")

    def _stub(self, **routes):
        return ProviderStub({"/v1/oauth2/token": (200, {"access_token": "tok-1"}), **routes})

    def test_create_order_in_dollars(self):
        stub = self._stub(
            **{
                "/v2/checkout/orders": (
                    201,
                    {"id": "PP-ORDER-1", "links": [{"rel": "approve", "href": "https://paypal.test/approve"}]},
                )
            }
        )
        request = PaymentRequest(order_id="O1", amount=1999, customer_name="Budi")

        session = PayPalGateway(self.config, client=stub.client()).create_payment(request)

        token_request, order_request = stub.requests
        assert token_request.headers["Authorization"].startswith("Basic ")
        assert order_request.headers["Authorization"] == "Bearer tok-1"
        unit = json.loads(order_request.content)["purchase_units"][0]
        assert unit["amount"] == {"currency_code": "USD", "value": "19.99"}
        assert unit["reference_id"] == "O1"
        assert session.reference == "PP-ORDER-1"
        assert session.checkout_url == "https://paypal.test/approve"

    def test_authentication_failure(self):
        stub = ProviderStub({"/v1/oauth2/token": (401, {"error": "invalid_client"})})
        with pytest.raises(ProviderCallFailed, match="authentication failed: 401"):
            PayPalGateway(self.config, client=stub.client()).create_payment(REQUEST)

    def test_status_of_completed_order(self):
        stub = self._stub(
            **{
                "/v2/checkout/orders/PP-ORDER-1": (
                    200,
                    {"status": "COMPLETED", "purchase_units": [{"amount": {"value": "19.99"}}]},
                )
            }
        )

        result = PayPalGateway(self.config, client=stub.client()).check_status("PP-ORDER-1")

        assert result.status == PaymentState.PAID
        assert result.paid_amount == 1999

    def test_capture_webhook(self):
        gateway = PayPalGateway(self.config, client=ProviderStub({}).client())
        payload = {
            "event_type": "PAYMENT.CAPTURE.COMPLETED",
            "resource": {"id": "CAPTURE-1", "custom_id": "O1", "amount": {"value": "19.99"}},
        }

        assert gateway.verify_callback(payload, {}) is True
        assert gateway.verify_callback({"event_type": "PAYMENT.CAPTURE.COMPLETED"}, {}) is False

        data = gateway.parse_callback(payload)
        assert data.order_id == "O1"
        assert data.status == PaymentState.PAID
        assert data.provider_ref == "CAPTURE-1"
        assert data.amount == 1999

    def test_approval_webhook_is_pending(self):
        gateway = PayPalGateway(self.config, client=ProviderStub({}).client())
        payload = {
            "event_type": "CHECKOUT.ORDER.APPROVED",
            "resource": {"id": "PP-ORDER-1", "purchase_units": [{"reference_id": "O1", "amount": {"value": "19.99"}}]},
        }

        data = gateway.parse_callback(payload)

        assert data.order_id == "O1"
        assert data.status == PaymentState.PENDING
