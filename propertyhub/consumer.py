"""Listens for property events and asks the search service to index them."""

from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass
from typing import Any, Callable, Sequence

import pika
import requests
from pika.exceptions import AMQPError

from propertyhub.errors import ApiError, bad_request, internal_server_error

log = logging.getLogger(__name__)

PASSWORD = "password"
DEFAULT_SEARCH_URL = "http://host.docker.internal:8000"
CONSUMER_TAG = "consumer_properties"
TIMEOUT = 10.0


@dataclass(frozen=True)
class ConsumerConfig:
    """Broker settings of the consumer."""

    queue_name: str = "consumer_solr"
    exchange: str = "properties"
    rabbit_user: str = "user"
    rabbit_password: str = PASSWORD
    rabbit_host: str = "rabbit"
    rabbit_port: int = 5672


DEFAULT_CONFIG = ConsumerConfig()


def amqp_url(user: str, password: str, host: str, port: int) -> str:
    return f"amqp://{user}:{password}@{host}:{port}/"


class QueueConsumer:
    """Binds a queue to a topic exchange and feeds message bodies to a callback."""

    def __init__(self, connection: Any, queue_name: str = DEFAULT_CONFIG.queue_name) -> None:
        self._connection = connection
        self._queue_name = queue_name

    def process_messages(
        self, exchange: str, topic: str, process: Callable[[str], None]
    ) -> None:
        """Consume until the channel stops; raises ``ApiError`` if setup fails."""
        try:
            channel = self._connection.channel()
        except (AMQPError, OSError) as exc:
            raise internal_server_error("Error opening channel", exc) from exc
        try:
            channel.exchange_declare(
                exchange=exchange,
                exchange_type="topic",
                durable=True,
                auto_delete=False,
                internal=False,
            )
        except AMQPError as exc:
            raise bad_request("Failed to declare an exchange") from exc
        try:
            channel.queue_declare(
                queue=self._queue_name, durable=False, auto_delete=False, exclusive=True
            )
            log.info(
                "Binding queue %s to exchange %s with routing key %s",
                self._queue_name,
                exchange,
                topic,
            )
            channel.queue_bind(queue=self._queue_name, exchange=exchange, routing_key=topic)

            def _on_message(_channel: Any, _method: Any, _props: Any, body: bytes) -> None:
                process(body.decode("utf-8", errors="replace"))

            channel.basic_consume(
                queue=self._queue_name,
                on_message_callback=_on_message,
                auto_ack=True,
                exclusive=False,
                consumer_tag=CONSUMER_TAG,
            )
            channel.start_consuming()
        except AMQPError as exc:
            raise internal_server_error("Error consuming messages", exc) from exc


class ConsumerService:
    """Forwards each new property id to the search service."""

    def __init__(
        self,
        queue: QueueConsumer,
        search_url: str = DEFAULT_SEARCH_URL,
        session: Any = None,
    ) -> None:
        self._queue = queue
        self._search_url = search_url.rstrip("/")
        self._session = session if session is not None else requests.Session()

    def handle(self, message_id: str) -> None:
        """Ask the search service to index ``message_id`` unless it is dotted."""
        if len(message_id.split(".")) < 2:
            try:
                self._session.get(
                    f"{self._search_url}/properties/{message_id}", timeout=TIMEOUT
                )
            except requests.RequestException as exc:
                log.debug("error in get request: %s", exc)
        log.debug("Propertie sent %s", message_id)

    def topic_consumer(self, topic: str) -> None:
        try:
            self._queue.process_messages(DEFAULT_CONFIG.exchange, topic, self.handle)
        except ApiError as err:
            log.error("Error starting consumer processing: %s", err)


def main(argv: Sequence[str] | None = None) -> int:
    """Connect to RabbitMQ and consume property events."""
    parser = argparse.ArgumentParser(
        prog="propertyhub-consumer", description="Forward property events to search."
    )
    parser.add_argument("--search-url", default=DEFAULT_SEARCH_URL)
    parser.add_argument("--topic", default="*.*")
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG)
    log.info("Starting consumer")

    config = DEFAULT_CONFIG
    url = amqp_url(
        config.rabbit_user, config.rabbit_password, config.rabbit_host, config.rabbit_port
    )
    try:
        connection = pika.BlockingConnection(pika.URLParameters(url))
    except (AMQPError, OSError) as exc:
        log.error("Failed to connect to RabbitMQ: %s", exc)
        return 1
    try:
        service = ConsumerService(QueueConsumer(connection, config.queue_name), args.search_url)
        service.topic_consumer(args.topic)
    finally:
        if connection.is_open:
            connection.close()
    return 0