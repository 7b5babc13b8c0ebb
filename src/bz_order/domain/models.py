"""Order domain model — pure dataclass, no SQLAlchemy dependency."""
from dataclasses import dataclass
from datetime import datetime

from src.bz_catalog.domain.models import ItemRef
from src.bz_common.enums import ItemKind, OrderStatus
from src.bz_common.errors import AlreadyProcessedError


@dataclass
class Order:
    id: str
    buyer_id: str
    # Exactly one of account_id / product_id is set
    account_id: str | None
    product_id: str | None
    amount: int  # coins, fixed at creation
    status: OrderStatus = OrderStatus.PENDING
    payment_note: str | None = None
    # Review stamps
    approved_at: datetime | None = None
    approved_by: str | None = None
    rejected_at: datetime | None = None
    rejected_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        if (self.account_id is None) == (self.product_id is None):
            raise ValueError("Order must reference exactly one of account_id or product_id")
        self.status = OrderStatus(self.status)

    @property
    def item_ref(self) -> ItemRef:
        if self.account_id is not None:
            return ItemRef(ItemKind.ACCOUNT, self.account_id)
        return ItemRef(ItemKind.PRODUCT, self.product_id)  # type: ignore[arg-type]

    @property
    def is_pending(self) -> bool:
        return self.status is OrderStatus.PENDING

    def ensure_can_transition(self, target: OrderStatus) -> None:
        """Raise AlreadyProcessedError unless pending → target is a legal move."""
        if not self.status.can_transition_to(target):
            if self.status.is_terminal:
                raise AlreadyProcessedError(f"Order {self.id}", self.status.value)
            raise ValueError(f"Illegal order transition {self.status.value} → {target.value}")
