"""Manual pending template: payment confirmed, an admin will deliver by hand."""

from html import escape


class ManualPendingTemplate:
    template_name = "manual_pending"

    @staticmethod
    def render(context: dict, site_name: str, site_url: str) -> dict:  # noqa: ARG004
        customer = context.get("customerName") or "Customer"
        product = context.get("productName") or ""
        order_id = str(context.get("orderId") or "N/A")

        return {
            "subject": f"Payment Confirmed - {product}",
            "body": (
                f"Hello {customer},\n\n"
                "Your payment has been confirmed and your order is being processed!\n\n"
                f"Order ID: {order_id}\n"
                f"Product: {product}\n"
                "Status: Awaiting admin verification\n\n"
                "Our team will process your order shortly. "
                "You will receive another email once your product has been delivered.\n\n"
                f"Thank you for your purchase!\n\nBest regards,\n{site_name}"
            ),
            "html": (
                "<h2>Payment Confirmed</h2>"
                f"<p>Hello {escape(customer)},</p>"
                "<p>Your payment has been confirmed and your order is being processed!</p>"
                "<ul>"
                f"<li><strong>Order ID:</strong> {escape(order_id)}</li>"
                f"<li><strong>Product:</strong> {escape(product)}</li>"
                "<li><strong>Status:</strong> Awaiting admin verification</li>"
                "</ul>"
                "<p>Our team will process your order shortly. "
                "You will receive another email once your product has been delivered.</p>"
                f"<p>Thank you for your purchase!</p><p>Best regards,<br>{escape(site_name)}</p>"
            ),
        }
