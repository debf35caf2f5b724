import logging

from faststream.exceptions import NackMessage

from src.core.dto import TradeBookingResult, TradeOrder
from src.core.exceptions import OrderError
from src.core.services.order_processor import OrderProcessor

logger = logging.getLogger(__name__)


async def handle_trade_order(order: TradeOrder, processor: OrderProcessor) -> TradeBookingResult | None:
    """Book one order taken off the queue.

    Rejected orders are acknowledged and dropped; retryable failures are nacked for redelivery.
    """
    try:
        return await processor.process_order(order)
    except OrderError as e:
        if e.retryable:
            logger.error(f"Order {order.id} failed with a retryable error, requeueing: {e}")
            raise NackMessage() from e
        logger.warning(f"Order {order.id} rejected: {e}")
        return None
