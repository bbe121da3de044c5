"""Order created template: sent when an order is placed and awaits payment."""

from html import escape

from fulfillment.notification.templates.formatting import format_rupiah


class OrderCreatedTemplate:
    template_name = "order_created"

    @staticmethod
    def render(context: dict, site_name: str, site_url: str) -> dict:  # noqa: ARG004
        customer = context.get("customerName") or "Customer"
        product = context.get("productName") or ""
        order_id = str(context.get("orderId") or "N/A")
        amount = format_rupiah(context.get("amount"))
        method = context.get("paymentMethod") or "QRIS"

        return {
            "subject": f"Order Confirmed - {product}",
            "body": (
                f"Hello {customer},\n\n"
                "Thank you for your order!\n\n"
                f"Order ID: {order_id}\n"
                f"Product: {product}\n"
                f"Amount: {amount}\n"
                f"Payment Method: {method}\n\n"
                "To complete your payment, please follow the steps on the payment page.\n\n"
                f"Best regards,\n{site_name}"
            ),
            "html": (
                "<h2>Order Confirmed</h2>"
                f"<p>Hello {escape(customer)},</p>"
                "<p>Thank you for your order!</p>"
                "<ul>"
                f"<li><strong>Order ID:</strong> {escape(order_id)}</li>"
                f"<li><strong>Product:</strong> {escape(product)}</li>"
                f"<li><strong>Amount:</strong> {escape(amount)}</li>"
                f"<li><strong>Payment Method:</strong> {escape(method)}</li>"
                "</ul>"
                "<p>To complete your payment, please follow the steps on the payment page.</p>"
                f"<p>Best regards,<br>{escape(site_name)}</p>"
            ),
        }
