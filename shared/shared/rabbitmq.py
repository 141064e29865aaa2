import logging
import aio_pika

logger = logging.getLogger(__name__)


class RabbitPublisher:
    """
    Keeps one robust connection to a topic exchange and publishes JSON bodies.

    Delivery is best effort: connect and publish failures are logged and
    dropped, so a broker outage never reaches the caller's write path. With
    no URL the publisher is disabled and every call is a no-op.
    """

    def __init__(self, url: str | None, exchange_name: str, source: str = "service"):
        self.url = url
        self.exchange_name = exchange_name
        self.source = source
        self.enabled = bool(url)
        self._connection = None
        self._exchange = None

    async def connect(self):
        if not self.enabled:
            return
        if self._connection and not self._connection.is_closed:
            return

        try:
            self._connection = await aio_pika.connect_robust(self.url)
            channel = await self._connection.channel()
            self._exchange = await channel.declare_exchange(
                self.exchange_name,
                aio_pika.ExchangeType.TOPIC,
                durable=True,
            )
        except Exception as e:
            logger.warning("[%s] RabbitMQ connect to %s failed: %s", self.source, self.exchange_name, e)
            self._connection = None
            self._exchange = None
            raise

    async def publish(self, routing_key: str, message_body: str) -> bool:
        """True when the broker accepted the message."""
        if not self.enabled:
            return False

        try:
            await self.connect()
            await self._exchange.publish(
                aio_pika.Message(
                    body=message_body.encode("utf-8"),
                    content_type="application/json",
                    delivery_mode=aio_pika.DeliveryMode.PERSISTENT,
                ),
                routing_key=routing_key,
            )
        except Exception as e:
            logger.warning("[%s] dropped %s event: %s", self.source, routing_key, e)
            return False
        return True

    async def close(self):
        try:
            if self._connection and not self._connection.is_closed:
                await self._connection.close()
        finally:
            self._connection = None
            self._exchange = None
