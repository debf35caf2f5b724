import asyncio
import logging

from dishka.async_container import make_async_container
from dishka.entities.depends_marker import FromDishka
from dishka.integrations import faststream as faststream_integration
from faststream import FastStream
from faststream.rabbit import QueueType, RabbitBroker, RabbitQueue

from src.core.dto import TradeOrder
from src.core.services.order_processor import OrderProcessor
from src.di.clients import HttpClientProvider, LookupClientProvider
from src.di.config import ProcessorConfigProvider
from src.di.database import DatabaseProvider
from src.di.publisher import PublisherProvider
from src.di.service import ServiceProvider
from src.logger import init_logging
from src.migrate import run_migrations
from src.processor.config.settings import ProcessorSettings
from src.processor.handlers import handle_trade_order

logger = logging.getLogger(__name__)

TRADE_ORDERS_QUEUE = "trade_orders"


def _configure_app() -> tuple[FastStream, RabbitBroker]:
    settings = ProcessorSettings()
    init_logging(settings.LOG_LEVEL)

    container = make_async_container(
        ProcessorConfigProvider(),
        DatabaseProvider(),
        HttpClientProvider(),
        LookupClientProvider(),
        PublisherProvider(),
        ServiceProvider(),
        context={ProcessorSettings: settings},
    )
    broker = RabbitBroker(settings.rabbit.dsn)
    app = FastStream(logger=logger, broker=broker)
    faststream_integration.setup_dishka(container=container, app=app, auto_inject=True)

    @app.on_startup
    async def startup_handler():
        """Bring the schema up to date before subscribers start consuming"""
        if settings.RUN_MIGRATIONS:
            await asyncio.to_thread(run_migrations, settings.database_uri)

    @app.on_shutdown
    async def shutdown_handler():
        """Gracefully shutdown the application and cleanup resources"""
        logger.info("Shutting down trade processor...")
        await container.close()
        logger.info("Application shutdown complete")

    return app, broker


app, broker = _configure_app()


@broker.subscriber(
    RabbitQueue(
        name=TRADE_ORDERS_QUEUE,
        durable=True,
        queue_type=QueueType.CLASSIC,
    )
)
async def process_trade_order(
    order: TradeOrder,
    processor: FromDishka[OrderProcessor],
) -> None:
    logger.info(f"Processing trade order: {order.account_id} {order.side.value} {order.quantity} {order.security}")
    await handle_trade_order(order, processor)
