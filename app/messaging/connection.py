"""Broker connection lifecycle: bounded-retry connect, queue declaration, close.

ConnectionManager owns the pika BlockingConnection and its channel. The
consumer borrows the channel but never opens or closes it itself.
"""

import time
from typing import Callable, Optional

import pika
from pika.adapters.blocking_connection import BlockingChannel, BlockingConnection
from pika.exceptions import AMQPError

from app.config.environment import EnvironmentConfig
from app.config.models import BrokerConfig
from app.logging import get_logger

from .exceptions import BrokerConnectionError
from .models import ConnectionState

logger = get_logger(__name__, component="broker")

CONNECTION_NAME = "notification-delivery"


class ConnectionManager:
    """Establishes and tears down the broker connection.

    ``connect()`` retries a fixed number of times with a fixed delay and
    raises BrokerConnectionError once attempts are exhausted. Every
    successful connect declares the queue durable, non-exclusive and
    non-auto-deleting with no arguments, so redeclaring on reconnect is a
    no-op on the broker.
    """

    def __init__(
        self,
        env_config: EnvironmentConfig,
        broker_config: BrokerConfig,
        connection_factory: Optional[Callable[[pika.ConnectionParameters], BlockingConnection]] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize connection manager.

        Args:
            env_config: Environment configuration (host, port, credentials, queue)
            broker_config: Retry, heartbeat and recovery policy
            connection_factory: Factory for connections (for mocking)
            sleep: Delay function between attempts (for tests)
        """
        self.env_config = env_config
        self.broker_config = broker_config
        self.connection_factory = connection_factory or pika.BlockingConnection
        self._sleep = sleep

        self.connection: Optional[BlockingConnection] = None
        self.channel: Optional[BlockingChannel] = None
        self.state = ConnectionState.DISCONNECTED

    @property
    def queue_name(self) -> str:
        return self.env_config.rabbitmq_queue

    def build_parameters(self) -> pika.ConnectionParameters:
        """Connection parameters for one attempt; retrying is done by connect()."""
        return pika.ConnectionParameters(
            host=self.env_config.rabbitmq_host,
            port=self.env_config.rabbitmq_port,
            virtual_host=self.env_config.rabbitmq_vhost,
            credentials=pika.PlainCredentials(
                self.env_config.rabbitmq_username,
                self.env_config.rabbitmq_password,
            ),
            heartbeat=self.broker_config.heartbeat_seconds,
            blocked_connection_timeout=self.broker_config.heartbeat_seconds,
            connection_attempts=1,
            client_properties={"connection_name": CONNECTION_NAME},
        )

    def connect(self) -> BlockingChannel:
        """Open a connection and channel and declare the queue.

        Returns:
            Open channel with the queue declared

        Raises:
            BrokerConnectionError: If every attempt failed
        """
        max_attempts = self.broker_config.max_connect_attempts
        delay = self.broker_config.connect_retry_delay_seconds
        address = self.env_config.broker_address
        parameters = self.build_parameters()

        for attempt in range(1, max_attempts + 1):
            self._set_state(ConnectionState.CONNECTING)
            logger.info(
                f"Connecting to RabbitMQ at {address} (attempt {attempt}/{max_attempts})",
                extra={
                    "event": "broker.connect.attempt",
                    "attempt": attempt,
                    "max_attempts": max_attempts,
                    "address": address,
                },
            )

            try:
                self._open(parameters)
            except (AMQPError, OSError) as e:
                self._discard()

                if attempt == max_attempts:
                    self._set_state(ConnectionState.DISCONNECTED)
                    logger.critical(
                        f"Could not connect to RabbitMQ at {address} after {max_attempts} attempts",
                        extra={
                            "event": "broker.connect.exhausted",
                            "attempts": max_attempts,
                            "address": address,
                            "error_type": type(e).__name__,
                        },
                    )
                    raise BrokerConnectionError(
                        f"Failed to connect to RabbitMQ at {address} after {max_attempts} attempts: {e}",
                        address=address,
                        attempts=max_attempts,
                    ) from e

                logger.error(
                    f"Error connecting to RabbitMQ (attempt {attempt}/{max_attempts}): {e!r}; "
                    f"retrying in {delay} seconds",
                    extra={
                        "event": "broker.connect.failed",
                        "attempt": attempt,
                        "address": address,
                        "error_type": type(e).__name__,
                        "retry_delay_seconds": delay,
                    },
                )
                self._sleep(delay)
                continue

            self._set_state(ConnectionState.CONNECTED)
            logger.info(
                f"Connected to RabbitMQ at {address}, queue '{self.queue_name}' declared",
                extra={"event": "broker.connect.succeeded", "attempt": attempt, "queue": self.queue_name},
            )
            return self.channel

        # max_attempts >= 1, so the loop either returns or raises
        raise AssertionError("unreachable")

    def _open(self, parameters: pika.ConnectionParameters) -> None:
        self.connection = self.connection_factory(parameters)
        self.channel = self.connection.channel()
        self.channel.queue_declare(
            queue=self.queue_name,
            durable=True,
            exclusive=False,
            auto_delete=False,
            arguments=None,
        )

    def mark_consuming(self) -> None:
        self._set_state(ConnectionState.CONSUMING)

    def mark_disconnected(self) -> None:
        """Forget a connection the broker already closed."""
        self._discard()
        self._set_state(ConnectionState.DISCONNECTED)

    def close(self) -> None:
        """Close channel and connection.

        Errors while closing are logged, never raised: by the time this runs
        the worker is stopping and there is nothing left to protect.
        """
        if self.connection is None and self.channel is None:
            self._set_state(ConnectionState.DISCONNECTED)
            return

        try:
            if self.channel is not None and self.channel.is_open:
                self.channel.close()
            if self.connection is not None and self.connection.is_open:
                self.connection.close()
            logger.info("RabbitMQ connection closed", extra={"event": "broker.closed"})
        except (AMQPError, OSError) as e:
            logger.error(
                f"Error closing RabbitMQ connection: {e!r}",
                extra={"event": "broker.close.failed", "error_type": type(e).__name__},
            )
        finally:
            self.channel = None
            self.connection = None
            self._set_state(ConnectionState.DISCONNECTED)

    def _discard(self) -> None:
        """Drop a half-open or dead connection without surfacing errors."""
        connection = self.connection
        self.channel = None
        self.connection = None

        if connection is not None and connection.is_open:
            try:
                connection.close()
            except (AMQPError, OSError) as e:
                logger.debug(f"Ignoring error while discarding connection: {e!r}")

    def _set_state(self, state: ConnectionState) -> None:
        if state is not self.state:
            logger.debug(
                f"Connection state {self.state.value} -> {state.value}",
                extra={"event": "broker.state_changed", "state": state.value},
            )
        self.state = state
