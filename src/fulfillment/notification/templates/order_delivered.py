"""Order delivered template: carries the delivered content to the customer."""

from html import escape

_FALLBACK_CONTENT = "Your product content is available in your dashboard."


class OrderDeliveredTemplate:
    template_name = "order_delivered"

    @staticmethod
    def render(context: dict, site_name: str, site_url: str) -> dict:
        customer = context.get("customerName") or "Customer"
        product = context.get("productName") or ""
        order_id = str(context.get("orderId") or "N/A")
        content = context.get("content") or _FALLBACK_CONTENT
        support_url = f"{site_url}/support"

        return {
            "subject": f"Your Order is Ready - {product}",
            "body": (
                f"Hello {customer},\n\n"
                f"Your order for {product} has been delivered!\n\n"
                f"Order ID: {order_id}\n"
                f"Product: {product}\n\n"
                f"{content}\n\n"
                f"Need help? Contact us: {support_url}\n\n"
                f"Best regards,\n{site_name}"
            ),
            "html": (
                "<h2>Your Order is Ready!</h2>"
                f"<p>Hello {escape(customer)},</p>"
                f"<p>Your order for <strong>{escape(product)}</strong> has been delivered.</p>"
                '<div style="background: #f4f4f4; padding: 15px; border-radius: 5px; margin: 20px 0;">'
                f'<pre style="white-space: pre-wrap;">{escape(content)}</pre>'
                "</div>"
                f'<p>Need help? <a href="{escape(support_url)}">Contact Support</a></p>'
                f"<p>Best regards,<br>{escape(site_name)}</p>"
            ),
        }
