# Copyright 2025 Confluent Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
# http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

import logging
from typing import Any, Dict, NamedTuple, Optional

from confluent_kafka import KafkaError, KafkaException

from ._native import NativeTopic, default_native
from ._util import ValidationUtil
from .config import ClientConfig, ConsumerConfig, TopicConfig
from .error import ClientCreationError, ConfigurationError

logger = logging.getLogger(__name__)

PRODUCER = 'producer'
CONSUMER = 'consumer'

LOG_LEVEL = 'log_level'

#: Upper bound for flushing outstanding messages when a producer handle is
#: destroyed.
FLUSH_TIMEOUT_MS = 2000


class PollResult(NamedTuple):
    """Outcome of a single poll: the last completed token and the failures seen"""
    token: Optional[int]
    failures: int


class DeliveryResult(NamedTuple):
    """Delivery report for one message"""
    token: int
    error: Optional[KafkaError] = None

    @property
    def failed(self) -> bool:
        return self.error is not None


class PendingDelivery(object):
    """
    Delivery callback bound to one message.

    Carries the message's correlation token into the client library; the
    library hands it back, from inside ``poll``, once the message has been
    delivered or has permanently failed.
    """
    __slots__ = ('_handle', 'token')

    def __init__(self, handle: 'ClientHandle', token: int) -> None:
        self._handle = handle
        self.token = token

    def __call__(self, err: Optional[KafkaError], msg: Any) -> None:
        self._handle._on_delivery(DeliveryResult(self.token, err))


class ClientHandle(object):
    """
    Shared, reference counted owner of a native client.

    A producer handle is shared by the producer that created it and by every
    topic opened on it; each of them holds one reference. The native client
    is destroyed exactly once, when the last reference is released. Producers
    get a bounded flush first, consumers are closed.

    The handle is not thread safe: the reference count and the pending
    delivery state are plain attributes and must only be used from the
    thread that polls.

    Use :py:meth:`ClientHandle.create` to construct one.
    """

    def __init__(self, kind: str, native: Any, config: Dict[str, str],
                 client_logger: Optional[logging.Logger] = None,
                 checkpoint_cb: Optional[Any] = None) -> None:
        self.kind = kind
        self.config = config
        self.logger = client_logger
        self.checkpoint_cb = checkpoint_cb
        self._native = native
        self._client = None
        self._refcount = 1
        self._token = None
        self._failures = 0

    @classmethod
    def create(cls, kind: str, broker_list: str, config: Optional[Dict[str, Any]] = None,
               topic_config: Optional[Any] = None, native: Optional[Any] = None) -> 'ClientHandle':
        """
        Resolves the configuration and opens a native client.

        The returned handle holds one reference, owned by the caller.

        Args:
            kind (str): ``PRODUCER`` or ``CONSUMER``.

            broker_list (str): Comma separated list of brokers.

            config (dict, optional): Client configuration.

            topic_config (dict or TopicConfig, optional): Default topic
                configuration.

            native (optional): Client library adapter, defaults to
                :py:class:`ConfluentNative`.

        Raises:
            ConfigurationError: if a property is invalid or rejected.

            ClientCreationError: if the broker list holds no valid broker or
                the client library failed to create the client.
        """
        config_class = ConsumerConfig if kind == CONSUMER else ClientConfig
        client_config = config_class(config, broker_list=broker_list)
        if not isinstance(topic_config, TopicConfig):
            topic_config = TopicConfig(topic_config)

        resolved = client_config.as_dict()
        resolved.update(topic_config.as_dict())

        native = default_native(native)
        handle = cls(kind, native, resolved,
                     client_logger=client_config.logger,
                     checkpoint_cb=client_config.checkpoint_cb)

        conf = dict(resolved)
        conf['error_cb'] = handle._on_error
        if handle.logger is not None:
            conf['logger'] = handle.logger
            conf['stats_cb'] = handle._on_stats
        else:
            # without a logger librdkafka would print to stderr
            conf.setdefault(LOG_LEVEL, '0')

        try:
            if kind == CONSUMER:
                handle._client = native.new_consumer(conf)
            else:
                handle._client = native.new_producer(conf)
        except KafkaException as e:
            error = e.args[0]
            if error.code() == KafkaError._INVALID_ARG:
                raise ConfigurationError(error.str())
            raise ClientCreationError('rd_kafka_new failed: {}'.format(error.str()), error.code())
        except (TypeError, ValueError) as e:
            raise ConfigurationError(str(e))

        logger.debug("%r: created with %d configuration properties", handle, len(resolved))
        return handle

    def __repr__(self) -> str:
        return 'ClientHandle({}, {:#x})'.format(self.kind, id(self))

    @property
    def refcount(self) -> int:
        return self._refcount

    @property
    def destroyed(self) -> bool:
        return self._client is None

    @property
    def client(self) -> Any:
        self._check_alive()
        return self._client

    def _check_alive(self) -> None:
        if self._client is None:
            raise RuntimeError('{!r}: handle has been destroyed'.format(self))

    def reference(self) -> None:
        self._check_alive()
        self._refcount += 1
        logger.debug("%r: Increasing the reference count to %d.", self, self._refcount)

    def dereference(self) -> None:
        """
        Releases one reference, destroying the client with the last one.

        Raises:
            RuntimeError: if no reference is left to release.
        """
        if self._refcount <= 0:
            raise RuntimeError('{!r}: reference count underflow'.format(self))
        self._refcount -= 1
        logger.debug("%r: Decreasing the reference count to %d.", self, self._refcount)
        if self._refcount == 0:
            logger.debug("%r: All references gone, destroying.", self)
            self._destroy()

    def _destroy(self) -> None:
        client, self._client = self._client, None
        try:
            if self.kind == PRODUCER:
                remaining = client.flush(FLUSH_TIMEOUT_MS / 1000.0)
                if remaining > 0:
                    logger.error("%r: failed to flush, %d messages left in the queue",
                                 self, remaining)
            else:
                client.close()
        except KafkaException as e:
            logger.error("%r: shutdown failed: %s", self, e.args[0].str())

    def poll(self, timeout: int = 0) -> PollResult:
        """
        Serves delivery reports and error events.

        Args:
            timeout (int): Maximum time to block, in milliseconds.

        Returns:
            PollResult: The token of the last delivery completed during this
            call (``None`` if there was none) and the number of failed
            deliveries seen during this call.
        """
        ValidationUtil.check_timeout(timeout)
        self._check_alive()

        self._token = None
        self._failures = 0
        self._client.poll(timeout / 1000.0)
        result = PollResult(self._token, self._failures)

        if result.token is not None and self.checkpoint_cb is not None:
            self.checkpoint_cb(result.token, result.failures)
        return result

    def open_topic(self, name: str, topic_config: Optional[Dict[str, str]] = None) -> NativeTopic:
        self._check_alive()
        return self._native.new_topic(self._client, name, topic_config or {}, self.config)

    def close_topic(self, topic: NativeTopic) -> None:
        self._native.destroy_topic(topic)

    def produce(self, topic: NativeTopic, value: Any, partition: int, token: int,
                owned: bool = False) -> int:
        """
        Hands a message to the client library for asynchronous delivery.

        Returns:
            int: 0 when the message was accepted, otherwise the librdkafka
            error code of the local rejection.
        """
        self._check_alive()
        try:
            self._native.produce(self._client, topic, value, partition,
                                 PendingDelivery(self, token), owned=owned)
        except BufferError:
            logger.debug("%r: local queue full, message %d rejected", self, token)
            return KafkaError._QUEUE_FULL
        except KafkaException as e:
            error = e.args[0]
            logger.debug("%r: message %d rejected: %s", self, token, error.str())
            return error.code()
        return 0

    def consume(self, timeout: float) -> Any:
        self._check_alive()
        return self._client.poll(timeout)

    def subscribe(self, topics) -> None:
        self._native.subscribe(self.client, topics)

    def assign(self, assignment) -> None:
        self._native.assign(self.client, assignment)

    def _on_delivery(self, result: DeliveryResult) -> None:
        self._token = result.token
        if result.failed:
            self._failures += 1
            logger.error("%r: Failed to deliver message %d: %s",
                         self, result.token, result.error.str())
        else:
            logger.debug("%r: Message %d delivered.", self, result.token)

    def _on_error(self, error: KafkaError) -> None:
        (self.logger or logger).error("%r: rdkafka error %d: %s", self, error.code(), error.str())

    def _on_stats(self, stats_json: str) -> None:
        self.logger.info("%s", stats_json)
