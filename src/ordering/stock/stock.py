"""StockLevel aggregate (CQRS) — the stock ledger.

One record per product holding the quantity still available for sale. Stock is
reserved when an order is placed and released when it is cancelled or
returned; nothing else mutates it.

The repository is the conditional-update surface: ``reserve_all`` checks every
line before decrementing any of them, so a checkout either takes all of its
stock or none. Callers serialize stock-mutating commands through
``ordering.dispatch`` so two checkouts never act on the same stale read.
"""

from collections import Counter
from datetime import UTC, datetime

from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import DateTime, Identifier, Integer

from ordering.domain import ordering
from ordering.exceptions import InsufficientStock
from ordering.stock.events import StockInitialized, StockReleased, StockReserved


@ordering.aggregate
class StockLevel:
    product_id = Identifier(identifier=True)
    available = Integer(default=0, min_value=0)
    updated_at = DateTime()

    @classmethod
    def initialize(cls, product_id, available):
        if available < 0:
            raise ValidationError({"available": ["Stock level cannot be negative"]})

        now = datetime.now(UTC)
        level = cls(product_id=product_id, available=available, updated_at=now)
        level.raise_(
            StockInitialized(
                product_id=str(product_id),
                available=available,
                initialized_at=now,
            )
        )
        return level

    def reset(self, available):
        """Overwrite the level (restock or stock count)."""
        if available < 0:
            raise ValidationError({"available": ["Stock level cannot be negative"]})

        now = datetime.now(UTC)
        self.available = available
        self.updated_at = now
        self.raise_(
            StockInitialized(
                product_id=str(self.product_id),
                available=available,
                initialized_at=now,
            )
        )

    def can_reserve(self, quantity) -> bool:
        return self.available >= quantity

    def reserve(self, quantity) -> int:
        if quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be positive"]})
        if not self.can_reserve(quantity):
            raise InsufficientStock(self.product_id, quantity, self.available)

        now = datetime.now(UTC)
        self.available -= quantity
        self.updated_at = now
        self.raise_(
            StockReserved(
                product_id=str(self.product_id),
                quantity=quantity,
                available=self.available,
                reserved_at=now,
            )
        )
        return self.available

    def release(self, quantity) -> int:
        # No upper bound: releasing twice for the same order is a caller bug.
        if quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be positive"]})

        now = datetime.now(UTC)
        self.available += quantity
        self.updated_at = now
        self.raise_(
            StockReleased(
                product_id=str(self.product_id),
                quantity=quantity,
                available=self.available,
                released_at=now,
            )
        )
        return self.available


def _quantities_by_product(lines):
    """Collapse ``[{product_id, quantity}]`` into per-product totals, keeping first-seen order."""
    totals = Counter()
    for line in lines:
        totals[str(line["product_id"])] += line["quantity"]
    return totals


@ordering.repository(part_of=StockLevel)
class StockLevelRepository:
    """Stock ledger operations on top of the standard repository."""

    def level_of(self, product_id) -> StockLevel | None:
        try:
            return self.get(str(product_id))
        except ObjectNotFoundError:
            return None

    def available(self, product_id) -> int:
        level = self.level_of(product_id)
        return level.available if level else 0

    def reserve(self, product_id, quantity) -> int:
        level = self.level_of(product_id)
        if level is None:
            raise InsufficientStock(product_id, quantity, 0)

        remaining = level.reserve(quantity)
        self.add(level)
        return remaining

    def release(self, product_id, quantity) -> int:
        level = self.level_of(product_id)
        if level is None:
            level = StockLevel(product_id=str(product_id), available=0)

        remaining = level.release(quantity)
        self.add(level)
        return remaining

    def reserve_all(self, lines) -> dict:
        """Reserve every line or none of them.

        Raises ``InsufficientStock`` for the first product that cannot be
        covered, before any level has been changed.
        """
        wanted = _quantities_by_product(lines)

        levels = {}
        for product_id, quantity in wanted.items():
            level = self.level_of(product_id)
            available = level.available if level else 0
            if available < quantity:
                raise InsufficientStock(product_id, quantity, available)
            levels[product_id] = level

        remaining = {}
        for product_id, quantity in wanted.items():
            level = levels[product_id]
            remaining[product_id] = level.reserve(quantity)
            self.add(level)
        return remaining

    def release_all(self, lines) -> dict:
        return {
            product_id: self.release(product_id, quantity)
            for product_id, quantity in _quantities_by_product(lines).items()
        }
