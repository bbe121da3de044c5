"""Value types passed between the dispatcher, strategies and callers."""

from dataclasses import dataclass, field

from fulfillment.order.order import ActorType


@dataclass(frozen=True)
class Actor:
    """Who triggered a delivery: the system (webhook, poll) or an admin."""

    type: str = ActorType.SYSTEM.value
    id: str = "system"
    email: str | None = None

    @classmethod
    def system(cls) -> "Actor":
        return cls()

    @classmethod
    def admin(cls, admin_id: str, email: str | None = None) -> "Actor":
        return cls(type=ActorType.ADMIN.value, id=admin_id, email=email)


@dataclass(frozen=True)
class DeliveryResult:
    success: bool
    message: str
    data: dict = field(default_factory=dict)
    error: str | None = None

    @classmethod
    def ok(cls, message: str, **data) -> "DeliveryResult":
        return cls(success=True, message=message, data=data)

    @classmethod
    def failed(cls, message: str, error: str) -> "DeliveryResult":
        return cls(success=False, message=message, error=error)
