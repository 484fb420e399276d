"""Stock initialization — seed or restock a product's available quantity."""

import structlog
from protean import handle
from protean.fields import Identifier, Integer
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.stock.stock import StockLevel

logger = structlog.get_logger(__name__)


@ordering.command(part_of="StockLevel")
class InitializeStock:
    product_id = Identifier(required=True)
    available = Integer(required=True, min_value=0)


@ordering.command_handler(part_of=StockLevel)
class InitializeStockHandler:
    @handle(InitializeStock)
    def initialize_stock(self, command):
        repo = current_domain.repository_for(StockLevel)
        level = repo.level_of(command.product_id)

        if level is None:
            level = StockLevel.initialize(command.product_id, command.available)
        else:
            level.reset(command.available)
        repo.add(level)

        logger.info(
            "Stock level initialized",
            product_id=str(command.product_id),
            available=command.available,
        )
        return {"product_id": str(command.product_id), "available": level.available}
