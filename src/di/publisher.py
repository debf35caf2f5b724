import logging
from collections.abc import AsyncIterator

from dishka import Provider, Scope, provide
from faststream.rabbit import RabbitBroker

from src.configs import PublisherSettings, RabbitSettings
from src.core.clients.interface import AbstractEventPublisher
from src.core.clients.publishers import LoggingEventPublisher, RabbitEventPublisher

logger = logging.getLogger(__name__)


class PublisherProvider(Provider):
    @provide(scope=Scope.APP)
    async def create_event_publisher(
        self,
        rabbit_config: RabbitSettings,
        cfg: PublisherSettings,
    ) -> AsyncIterator[AbstractEventPublisher]:
        if not cfg.ENABLED:
            logger.info("Event publishing is disabled; events are dropped")
            yield LoggingEventPublisher()
            return

        broker = RabbitBroker(rabbit_config.dsn, logger=logger)
        await broker.connect()
        publisher = RabbitEventPublisher(broker, exchange_name=cfg.EXCHANGE)
        await publisher.declare()
        try:
            yield publisher
        finally:
            await broker.close()
