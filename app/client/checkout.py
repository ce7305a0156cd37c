from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Protocol, Union

CHECKOUT_NAME = "Astrology Consultancy"
THEME_COLOR = "#6366f1"


@dataclass
class CheckoutRequest:
    key_id: str
    order_id: str
    amount: int
    currency: str
    description: str
    prefill: dict[str, str] = field(default_factory=dict)
    notes: dict[str, str] = field(default_factory=dict)
    theme: dict[str, str] = field(default_factory=lambda: {"color": THEME_COLOR})

    def to_options(self) -> dict[str, Any]:
        """Options in the shape the hosted Razorpay widget expects."""
        return {
            "key": self.key_id,
            "amount": self.amount,
            "currency": self.currency,
            "name": CHECKOUT_NAME,
            "description": self.description,
            "order_id": self.order_id,
            "prefill": dict(self.prefill),
            "notes": dict(self.notes),
            "theme": dict(self.theme),
        }


@dataclass(frozen=True)
class PaymentProof:
    """Opaque proof handed back by the widget's success callback."""

    order_id: str
    payment_id: str
    signature: str

    @classmethod
    def from_callback(cls, response: dict[str, Any]) -> "PaymentProof":
        return cls(
            order_id=response["razorpay_order_id"],
            payment_id=response["razorpay_payment_id"],
            signature=response["razorpay_signature"],
        )


@dataclass(frozen=True)
class CheckoutDismissed:
    reason: Optional[str] = None


CheckoutResult = Union[PaymentProof, CheckoutDismissed]


class Checkout(Protocol):
    """Hosted checkout collaborator.

    ``open`` returns a ``PaymentProof`` on the success callback or
    ``CheckoutDismissed`` when the user closes the widget, and raises
    ``CheckoutUnavailable`` when the widget cannot be loaded at all.
    """

    def open(self, request: CheckoutRequest) -> CheckoutResult:
        ...
