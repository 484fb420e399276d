"""Domain events for the stock ledger."""

from protean.fields import DateTime, Identifier, Integer

from ordering.domain import ordering


@ordering.event(part_of="StockLevel")
class StockInitialized:
    __version__ = 1

    product_id = Identifier(required=True)
    available = Integer(required=True)
    initialized_at = DateTime(required=True)


@ordering.event(part_of="StockLevel")
class StockReserved:
    __version__ = 1

    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    available = Integer(required=True)
    reserved_at = DateTime(required=True)


@ordering.event(part_of="StockLevel")
class StockReleased:
    __version__ = 1

    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    available = Integer(required=True)
    released_at = DateTime(required=True)
