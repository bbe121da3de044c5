"""Small formatting helpers shared by the email templates."""

# Stock record fields that describe the record itself, not what the customer bought
_BOOKKEEPING_KEYS = {"used", "usedAt", "usedBy", "usedByEmail", "used_at", "used_by", "used_by_email"}


def format_rupiah(amount) -> str:
    if amount is None:
        return "Rp 0"
    return "Rp " + f"{int(amount):,}".replace(",", ".")


def format_content(content: dict) -> str:
    """Render delivered content as ``key: value`` lines."""
    return "\n".join(f"{key}: {value}" for key, value in content.items() if key not in _BOOKKEEPING_KEYS)
