"""Product and shopping list aggregates."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from .errors import NameEmpty, OutcomeRequiresFinishedStatus, ShoppingItemNameEmpty


class ProductStatus(str, Enum):
    NEW = "new"
    OPENED = "opened"
    ALMOST_EMPTY = "almost_empty"
    FINISHED = "finished"


class ProductLocation(str, Enum):
    FRIDGE = "fridge"
    PANTRY = "pantry"
    FREEZER = "freezer"


class ProductOutcome(str, Enum):
    USED = "used"
    THROWN_AWAY = "thrown_away"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def validate_product_fields(
    name: str, status: ProductStatus, outcome: ProductOutcome | None
) -> None:
    """Raise if name is blank or an outcome is given for an unfinished product.

    Shared by ``Product.create`` and the update path so both reject the
    same input before touching any store.
    """
    if not name or not name.strip():
        raise NameEmpty()
    if outcome is not None and status != ProductStatus.FINISHED:
        raise OutcomeRequiresFinishedStatus()


@dataclass(frozen=True)
class Product:
    """One inventory item owned by a user."""

    id: str
    owner: str
    name: str
    status: ProductStatus
    location: ProductLocation | None
    quantity: str | None
    expiry_date: datetime | None
    estimated_expiry_date: datetime | None
    outcome: ProductOutcome | None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def create(
        cls,
        owner: str,
        name: str,
        status: ProductStatus = ProductStatus.NEW,
        location: ProductLocation | None = None,
        quantity: str | None = None,
        expiry_date: datetime | None = None,
        estimated_expiry_date: datetime | None = None,
        outcome: ProductOutcome | None = None,
    ) -> Product:
        """Validate input and build a new product with a fresh id.

        Raises:
            NameEmpty: If the trimmed name is empty.
            OutcomeRequiresFinishedStatus: If outcome is set on an
                unfinished product.
        """
        validate_product_fields(name, status, outcome)
        now = utcnow()
        return cls(
            id=str(uuid.uuid4()),
            owner=owner,
            name=name.strip(),
            status=status,
            location=location,
            quantity=quantity,
            expiry_date=expiry_date,
            estimated_expiry_date=estimated_expiry_date,
            outcome=outcome,
            created_at=now,
            updated_at=now,
        )

    @classmethod
    def reconstruct(
        cls,
        id: str,
        owner: str,
        name: str,
        status: ProductStatus,
        location: ProductLocation | None,
        quantity: str | None,
        expiry_date: datetime | None,
        estimated_expiry_date: datetime | None,
        outcome: ProductOutcome | None,
        created_at: datetime,
        updated_at: datetime,
    ) -> Product:
        """Rebuild a product from persisted state. No validation is applied."""
        return cls(
            id=id,
            owner=owner,
            name=name,
            status=status,
            location=location,
            quantity=quantity,
            expiry_date=expiry_date,
            estimated_expiry_date=estimated_expiry_date,
            outcome=outcome,
            created_at=created_at,
            updated_at=updated_at,
        )

    @property
    def effective_expiry_date(self) -> datetime | None:
        """Explicit expiry date if present, else the estimate."""
        if self.expiry_date is not None:
            return self.expiry_date
        return self.estimated_expiry_date

    @property
    def is_finished(self) -> bool:
        return self.status == ProductStatus.FINISHED

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "status": self.status.value,
            "location": self.location.value if self.location else None,
            "quantity": self.quantity,
            "expiry_date": _isoformat(self.expiry_date),
            "estimated_expiry_date": _isoformat(self.estimated_expiry_date),
            "outcome": self.outcome.value if self.outcome else None,
            "created_at": _isoformat(self.created_at),
            "updated_at": _isoformat(self.updated_at),
        }


@dataclass(frozen=True)
class ShoppingItem:
    """One entry on a user's shopping list, optionally linked to a product."""

    id: str
    owner: str
    name: str
    product_id: str | None
    is_bought: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def create(
        cls, owner: str, name: str, product_id: str | None = None
    ) -> ShoppingItem:
        """Build a new, unbought shopping item.

        Raises:
            ShoppingItemNameEmpty: If the trimmed name is empty.
        """
        if not name or not name.strip():
            raise ShoppingItemNameEmpty()
        now = utcnow()
        return cls(
            id=str(uuid.uuid4()),
            owner=owner,
            name=name.strip(),
            product_id=product_id,
            is_bought=False,
            created_at=now,
            updated_at=now,
        )

    @classmethod
    def reconstruct(
        cls,
        id: str,
        owner: str,
        name: str,
        product_id: str | None,
        is_bought: bool,
        created_at: datetime,
        updated_at: datetime,
    ) -> ShoppingItem:
        """Rebuild an item from persisted state. No validation is applied."""
        return cls(
            id=id,
            owner=owner,
            name=name,
            product_id=product_id,
            is_bought=is_bought,
            created_at=created_at,
            updated_at=updated_at,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "product_id": self.product_id,
            "is_bought": self.is_bought,
            "created_at": _isoformat(self.created_at),
            "updated_at": _isoformat(self.updated_at),
        }
