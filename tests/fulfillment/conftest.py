import httpx
import pytest
from fulfillment.alert.fake_adapter import FakeAlertAdapter
from fulfillment.config import FulfillmentSettings
from fulfillment.notification.channel.fake_email import FakeEmailAdapter
from fulfillment.notification.queue_item import NotificationQueueItem
from fulfillment.order.order import Order
from fulfillment.product.product import Product
from fulfillment.services import build_services, set_services
from fulfillment.stock.stock import StockItem
from payments.gateway import build_fake_registry
from protean import current_domain
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def fulfillment_bed():
    from fulfillment.domain import fulfillment

    bed = DomainFixture(fulfillment)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(fulfillment_bed):
    with fulfillment_bed.domain_context():
        yield


class ScriptedAPI:
    """httpx MockTransport handler answering with a scripted list of responses.

    The last scripted response repeats once the script runs out.
    """

    def __init__(self):
        self.script: list[tuple[int, dict | str]] = [(200, {"transactionId": "trx-001"})]
        self.requests: list[httpx.Request] = []

    def respond(self, *responses):
        self.script = list(responses)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status, body = self.script.pop(0) if len(self.script) > 1 else self.script[0]
        if isinstance(body, dict):
            return httpx.Response(status, json=body)
        return httpx.Response(status, text=body)


@pytest.fixture()
def settings():
    return FulfillmentSettings()


@pytest.fixture()
def registry():
    return build_fake_registry()


@pytest.fixture()
def email_channel():
    return FakeEmailAdapter()


@pytest.fixture()
def alerts():
    return FakeAlertAdapter()


@pytest.fixture()
def delivery_api():
    return ScriptedAPI()


@pytest.fixture()
def sleeps():
    """Backoff delays requested by the API deliverer, in seconds."""
    return []


@pytest.fixture()
def services(settings, registry, email_channel, alerts, delivery_api, sleeps):
    svc = build_services(
        settings=settings,
        registry=registry,
        email_channel=email_channel,
        alerts=alerts,
        api_client=httpx.Client(transport=httpx.MockTransport(delivery_api)),
        sleep=sleeps.append,
    )
    set_services(svc)
    return svc


@pytest.fixture()
def make_product():
    def _make(delivery_type="preloaded", slug="netflix-premium", title="Netflix Premium 1 Month", **fields):
        product = Product(title=title, slug=slug, delivery_type=delivery_type, **fields)
        current_domain.repository_for(Product).add(product)
        return current_domain.repository_for(Product).get(product.id)

    return _make


@pytest.fixture()
def make_order():
    def _make(product, amount=50000, customer_name="Budi", customer_email="budi@example.com", **fields):
        order = Order.create(
            product_id=product.id,
            product_slug=product.slug,
            product_name=product.title,
            amount=amount,
            customer_name=customer_name,
            customer_email=customer_email,
            **fields,
        )
        current_domain.repository_for(Order).add(order)
        return current_domain.repository_for(Order).get(order.id)

    return _make


@pytest.fixture()
def load_stock():
    def _load(product_slug, *payloads):
        repo = current_domain.repository_for(StockItem)
        items = []
        for payload in payloads:
            item = StockItem.load(product_slug, payload)
            repo.add(item)
            items.append(item)
        return items

    return _load


def reload(order) -> Order:
    return current_domain.repository_for(Order).get(order.id)


def queued(template=None) -> list[NotificationQueueItem]:
    items = current_domain.repository_for(NotificationQueueItem)._dao.query.all().items
    return [item for item in items if template is None or item.template == template]


@pytest.fixture()
def order_reloader():
    return reload


@pytest.fixture()
def queued_notifications():
    return queued
