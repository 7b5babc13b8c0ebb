"""Buyer notification payload."""

from dataclasses import dataclass
from enum import Enum


class NotificationKind(str, Enum):
    ORDER_APPROVED = "order_approved"
    ORDER_REJECTED = "order_rejected"
    PURCHASE_COMPLETED = "purchase_completed"


@dataclass(frozen=True)
class Notification:
    kind: NotificationKind
    recipient: str       # buyer user id
    item_title: str
    amount: int          # coins
    order_id: str

    def to_payload(self) -> dict[str, object]:
        return {
            "kind": self.kind.value,
            "recipient": self.recipient,
            "item_title": self.item_title,
            "amount": self.amount,
            "order_id": self.order_id,
        }
