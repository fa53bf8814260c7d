"""
Kafka producer and consumer wrappers built on aiokafka.

Both are process-wide singletons driven from the application lifespan.
When KAFKA_ENABLED is false they stay stopped and ``publish_event`` is a
no-op, which is how tests and local development run.
"""

import asyncio
import json
from collections import defaultdict
from collections.abc import Callable
from typing import Any, Optional

from aiokafka import AIOKafkaConsumer, AIOKafkaProducer
from aiokafka.errors import KafkaError

from app.core.config import settings
from app.core.events import EventEnvelope
from app.core.logging import get_logger

logger = get_logger(__name__)

EventHandler = Callable[[dict[str, Any]], None]


class KafkaProducer:
    _producer: Optional[AIOKafkaProducer] = None
    _started: bool = False

    @classmethod
    async def start(cls) -> None:
        if not settings.KAFKA_ENABLED:
            logger.info("Kafka is disabled, producer not started")
            return
        if cls._started:
            return

        cls._producer = AIOKafkaProducer(
            bootstrap_servers=settings.KAFKA_BOOTSTRAP_SERVERS,
            value_serializer=lambda v: json.dumps(v).encode("utf-8"),
            key_serializer=lambda k: k.encode("utf-8") if k else None,
        )
        try:
            await cls._producer.start()
            cls._started = True
        except KafkaError as e:
            # Events are best-effort; the service runs without a broker
            logger.error(f"Failed to start Kafka producer: {e}")
            cls._producer = None

    @classmethod
    async def stop(cls) -> None:
        if cls._producer is not None:
            await cls._producer.stop()
        cls._producer = None
        cls._started = False

    @classmethod
    async def send(cls, topic: str, value: dict[str, Any], key: Optional[str] = None) -> None:
        if not cls._started or cls._producer is None:
            logger.debug(f"Kafka producer not running, dropping message for {topic}")
            return
        await cls._producer.send_and_wait(topic, value=value, key=key)


async def publish_event(topic: str, event: EventEnvelope, key: Optional[str] = None) -> None:
    """Publish an event envelope to ``topic``."""
    await KafkaProducer.send(topic, event.model_dump(mode="json"), key=key)


class KafkaConsumer:
    _handlers: dict[str, list[EventHandler]] = defaultdict(list)
    _consumer: Optional[AIOKafkaConsumer] = None
    _task: Optional[asyncio.Task] = None

    @classmethod
    def register_handler(cls, topic: str, handler: EventHandler) -> None:
        cls._handlers[topic].append(handler)
        logger.info(f"Registered handler {handler.__name__} for topic {topic}")

    @classmethod
    async def start(cls) -> None:
        if not settings.KAFKA_ENABLED or not cls._handlers:
            logger.info("Kafka consumer not started (disabled or no handlers)")
            return

        cls._consumer = AIOKafkaConsumer(
            *cls._handlers.keys(),
            bootstrap_servers=settings.KAFKA_BOOTSTRAP_SERVERS,
            group_id=settings.KAFKA_CONSUMER_GROUP,
            value_deserializer=lambda v: json.loads(v.decode("utf-8")),
            auto_offset_reset="earliest",
        )
        try:
            await cls._consumer.start()
        except KafkaError as e:
            logger.error(f"Failed to start Kafka consumer: {e}")
            cls._consumer = None
            return
        cls._task = asyncio.create_task(cls._consume())

    @classmethod
    async def _consume(cls) -> None:
        async for message in cls._consumer:
            for handler in cls._handlers.get(message.topic, []):
                try:
                    handler(message.value)
                except Exception as e:
                    logger.error(
                        f"Handler {handler.__name__} failed for {message.topic}: {e}",
                        exc_info=True,
                    )

    @classmethod
    async def stop(cls) -> None:
        if cls._task is not None:
            cls._task.cancel()
            try:
                await cls._task
            except asyncio.CancelledError:
                pass
            cls._task = None
        if cls._consumer is not None:
            await cls._consumer.stop()
            cls._consumer = None


async def publish_event_safely(
    topic: str, event: EventEnvelope, key: Optional[str] = None
) -> bool:
    """Publish without letting a broker failure reach the caller."""
    try:
        await publish_event(topic, event, key=key)
        return True
    except Exception as e:
        logger.warning(f"Failed to publish {event.event_type.value} event: {e}")
        return False
