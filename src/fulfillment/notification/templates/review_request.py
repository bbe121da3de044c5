"""Review request template: sent a few minutes after an automatic delivery."""

from html import escape


class ReviewRequestTemplate:
    template_name = "review_request"

    @staticmethod
    def render(context: dict, site_name: str, site_url: str) -> dict:
        customer = context.get("customerName") or "Customer"
        product = context.get("productName") or ""
        review_url = f"{site_url}/products/{context.get('productSlug') or ''}"

        return {
            "subject": f"How was your experience with {product}?",
            "body": (
                f"Hello {customer},\n\n"
                f"We hope you are enjoying {product}.\n\n"
                "Would you mind taking a moment to leave a review? It helps us improve!\n\n"
                f"Review here: {review_url}\n\n"
                f"Best regards,\n{site_name}"
            ),
            "html": (
                "<h2>How was your experience?</h2>"
                f"<p>Hello {escape(customer)},</p>"
                f"<p>We hope you are enjoying <strong>{escape(product)}</strong>.</p>"
                "<p>Would you mind taking a moment to leave a review? It helps us improve!</p>"
                f'<p><a href="{escape(review_url)}">Leave a Review</a></p>'
                f"<p>Best regards,<br>{escape(site_name)}</p>"
            ),
        }
