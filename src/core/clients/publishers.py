import logging
from typing import Any

from faststream.rabbit import ExchangeType, RabbitBroker, RabbitExchange
from pydantic import BaseModel

from src.core.clients.interface import AbstractEventPublisher
from src.core.exceptions import PublishFailure

logger = logging.getLogger(__name__)


def topic_to_routing_key(topic: str) -> str:
    """/accounts/22214/trades -> accounts.22214.trades"""
    return ".".join(part for part in topic.split("/") if part)


class RabbitEventPublisher(AbstractEventPublisher):
    """Publishes account events to a durable topic exchange"""

    def __init__(self, broker: RabbitBroker, exchange_name: str = "traderx.events") -> None:
        self._broker = broker
        self._exchange = RabbitExchange(exchange_name, type=ExchangeType.TOPIC, durable=True)

    @property
    def exchange(self) -> RabbitExchange:
        return self._exchange

    async def declare(self) -> None:
        await self._broker.declare_exchange(self._exchange)

    async def publish(self, topic: str, payload: BaseModel) -> None:
        routing_key = topic_to_routing_key(topic)
        try:
            await self._broker.publish(
                payload.model_dump(mode="json", by_alias=True),
                exchange=self._exchange,
                routing_key=routing_key,
            )
        except Exception as e:
            raise PublishFailure(f"Failed to publish to {topic}: {e}") from e
        logger.debug(f"Published {type(payload).__name__} to {routing_key}")


class LoggingEventPublisher(AbstractEventPublisher):
    """Logs and drops events; used when publishing is disabled"""

    async def publish(self, topic: str, payload: BaseModel) -> None:
        logger.debug(f"Publishing disabled, dropped {type(payload).__name__} for {topic}")


class InMemoryEventPublisher(AbstractEventPublisher):
    """Keeps every published event in memory for inspection in tests"""

    def __init__(self) -> None:
        self.events: list[tuple[str, dict[str, Any]]] = []

    async def publish(self, topic: str, payload: BaseModel) -> None:
        self.events.append((topic, payload.model_dump(mode="json", by_alias=True)))

    def topics(self) -> list[str]:
        return [topic for topic, _ in self.events]
