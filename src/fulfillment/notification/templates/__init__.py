"""Template registry: maps queue template names to template classes.

Each template renders a subject, a plaintext body and an HTML body from
the queue item's data plus the shop's name and URL.
"""

from fulfillment.notification.templates.manual_pending import ManualPendingTemplate
from fulfillment.notification.templates.order_created import OrderCreatedTemplate
from fulfillment.notification.templates.order_delivered import OrderDeliveredTemplate
from fulfillment.notification.templates.review_request import ReviewRequestTemplate

TEMPLATE_REGISTRY: dict[str, type] = {
    OrderCreatedTemplate.template_name: OrderCreatedTemplate,
    OrderDeliveredTemplate.template_name: OrderDeliveredTemplate,
    ReviewRequestTemplate.template_name: ReviewRequestTemplate,
    ManualPendingTemplate.template_name: ManualPendingTemplate,
}


def get_template(template_name: str):
    """Look up a template class by name."""
    template_cls = TEMPLATE_REGISTRY.get(template_name)
    if template_cls is None:
        raise ValueError(f"Unknown template: {template_name}")
    return template_cls
