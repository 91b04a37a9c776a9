#!/usr/bin/env python
# -*- coding: utf-8 -*-
#
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
#

import logging

from ._core import PRODUCER, ClientHandle
from ._util import ValidationUtil
from ._zerocopy import assemble
from .config import TopicConfig
from .error import InvalidTopicError

logger = logging.getLogger(__name__)

#: Partition value letting the configured partitioner pick the partition.
PARTITION_UA = -1


class Topic(object):
    """
    A topic opened on a producer.

    Holds one reference to the producer's client handle for as long as it
    is open, so the client is never destroyed underneath it. Topics are
    created by :py:meth:`Producer.create_topic`, not instantiated directly.

    Messages sent without a correlation token are numbered with the topic's
    own sequence counter, starting at 0.
    """

    def __init__(self, handle, name, topic_config=None):
        self.name = name
        self._native_topic = handle.open_topic(name, topic_config)
        handle.reference()
        self._handle = handle
        self._sequence = 0

    def __repr__(self):
        return 'Topic({!r})'.format(self.name)

    @property
    def closed(self):
        return self._handle is None

    def _next_token(self):
        token = self._sequence
        self._sequence += 1
        return token

    def _produce(self, value, partition, token, owned=False):
        if self._handle is None:
            raise InvalidTopicError(self.name)
        return self._handle.produce(self._native_topic, value, partition, token, owned=owned)

    def send(self, partition, payload, token=None):
        """
        Enqueue a message for asynchronous delivery.

        Args:
            partition (int): Partition to produce to, or ``PARTITION_UA``.

            payload (str or bytes): Message payload. ``None`` is ignored.

            token (int, optional): Correlation token reported by
                :py:meth:`poll` once the message completes. Defaults to the
                topic's next sequence number.

        Returns:
            int: 0 if the message was accepted, else a librdkafka error code.
        """
        ValidationUtil.check_partition(partition)
        if payload is None:
            return 0
        if token is None:
            token = self._next_token()
        else:
            ValidationUtil.check_token(token)
        return self._produce(payload, partition, token)

    def poll(self, timeout=0):
        """
        Serve delivery reports of the shared client, see :py:meth:`Producer.poll`.
        """
        if self._handle is None:
            raise InvalidTopicError(self.name)
        return self._handle.poll(timeout)

    def close(self):
        """
        Releases the native topic and the reference to the client handle.
        Closing twice is a no-op.
        """
        handle, self._handle = self._handle, None
        if handle is not None:
            handle.close_topic(self._native_topic)
            handle.dereference()


class Producer(object):
    """
    Poll driven Kafka producer.

    Messages are produced to topics opened with :py:meth:`create_topic`.
    :py:meth:`send` only enqueues a message; whether it was delivered is
    learned by calling :py:meth:`poll` regularly, which reports the
    correlation token of the last message that completed and the number of
    messages that failed since the previous poll.

    Note:

        A single token and a failure count is all poll reports. When several
        messages complete within one poll the token is that of the last one,
        and a failure cannot be attributed to a particular message.

    The producer owns one reference to its client handle and each open topic
    another; the client is flushed (for up to two seconds) and destroyed when
    the producer and all of its topics are closed. Messages still queued
    after the flush are lost.

    Args:
        broker_list (str): Comma separated list of brokers.

        config (dict, optional): Producer configuration. Values must be
            ``str``, ``int`` or ``bool``. Also accepts ``logger`` and
            ``checkpoint_cb``, see :py:class:`kafka_bridge.config.ClientConfig`.

        topic_config (dict, optional): Default topic configuration.

    Raises:
        ConfigurationError: if the configuration is invalid.

        ClientCreationError: if the client could not be created.
    """

    def __init__(self, broker_list, config=None, topic_config=None, native=None):
        self._topics = {}
        self._handle = ClientHandle.create(PRODUCER, broker_list, config,
                                           topic_config=topic_config, native=native)
        logger.debug("Producer(%#x) created %s config.", id(self),
                     "with" if config is not None else "without")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()
        return False

    def __len__(self):
        return sum(1 for topic in self._topics.values() if not topic.closed)

    @property
    def closed(self):
        return self._handle is None

    def _check_open(self):
        if self._handle is None:
            raise RuntimeError('producer is closed')

    def create_topic(self, name, topic_config=None):
        """
        Opens a topic for producing.

        Creating a topic that is already open returns the open topic without
        touching its configuration. A topic closed directly through
        :py:meth:`Topic.close` is opened again.

        The client library keeps one topic configuration per client, set
        when the producer was created. A topic property is therefore only
        accepted when it repeats the producer's value for that property.

        Args:
            name (str): Topic name.

            topic_config (dict, optional): Topic configuration.

        Returns:
            Topic: the open topic.

        Raises:
            ConfigurationError: if the topic configuration is invalid or sets
                a property to a value other than the producer's.
        """
        ValidationUtil.check_is_string(name, 'topic')
        ValidationUtil.check_optional_mapping(topic_config, 'topic_config')
        self._check_open()

        topic = self._open_topic(name)
        if topic is not None:
            return topic

        resolved = TopicConfig(topic_config).as_dict()
        topic = Topic(self._handle, name, resolved)
        self._topics[name] = topic
        logger.debug("Producer(%#x) create_topic %s %s config.", id(self), name,
                     "with" if topic_config is not None else "without")
        return topic

    def _open_topic(self, name):
        topic = self._topics.get(name)
        if topic is not None and topic.closed:
            # closed through Topic.close(), forget it
            del self._topics[name]
            return None
        return topic

    def has_topic(self, name):
        ValidationUtil.check_is_string(name, 'topic')
        return self._open_topic(name) is not None

    def get_topic(self, name):
        topic = self._open_topic(name)
        if topic is None:
            raise InvalidTopicError(name)
        return topic

    def destroy_topic(self, name):
        """
        Closes a topic. Unknown topics are ignored.
        """
        ValidationUtil.check_is_string(name, 'topic')
        topic = self._topics.pop(name, None)
        if topic is not None:
            topic.close()

    def send(self, topic, partition, token, payload):
        """
        Enqueue a message for asynchronous delivery.

        Args:
            topic (str): Name of a topic opened with :py:meth:`create_topic`.

            partition (int): Partition to produce to, or ``PARTITION_UA``.

            token (int): Correlation token between 0 and 2**64-1, reported
                back by :py:meth:`poll` when the message completes.

            payload (str or bytes): Message payload. ``None`` is ignored.

        Returns:
            int: 0 if the message was accepted for delivery (not that it was
            delivered), else the librdkafka error code of the local
            rejection, e.g. ``KafkaError._QUEUE_FULL``.

        Raises:
            InvalidTopicError: if the topic has not been created.
        """
        ValidationUtil.check_is_string(topic, 'topic')
        ValidationUtil.check_token(token)
        return self.get_topic(topic).send(partition, payload, token=token)

    def send_segments(self, topic, partition, token, message):
        """
        Enqueue a message made up of one or more buffer segments.

        A single segment is enqueued without an intermediate copy; several
        segments are joined into one payload first. A message without data
        is ignored.

        Args:
            topic (str): Name of a topic opened with :py:meth:`create_topic`.

            partition (int): Partition to produce to, or ``PARTITION_UA``.

            token (int): Correlation token, see :py:meth:`send`.

            message: Iterable of segments, or an object with a
                ``zero_copy()`` method returning them. A segment is a
                ``str``, a bytes-like object or a ``(buffer, length)`` pair.

        Returns:
            int: 0 if the message was accepted or had no data, else a
            librdkafka error code.

        Raises:
            InvalidTopicError: if the topic has not been created.

            TypeError: for an unsupported segment.
        """
        ValidationUtil.check_is_string(topic, 'topic')
        ValidationUtil.check_partition(partition)
        ValidationUtil.check_token(token)
        target = self.get_topic(topic)

        assembly = assemble(message)
        if assembly is None:
            return 0
        return target._produce(assembly.value, partition, token, owned=assembly.owned)

    def poll(self, timeout=0):
        """
        Serve delivery reports.

        Args:
            timeout (int): Maximum time to block, in milliseconds.

        Returns:
            PollResult: ``(token, failures)``, the correlation token of the
            last message completed during this poll, or ``None``, and the
            number of messages that failed during this poll.
        """
        self._check_open()
        return self._handle.poll(timeout)

    def close(self):
        """
        Closes all topics and releases the producer's client handle.
        """
        for name in list(self._topics):
            self.destroy_topic(name)

        handle, self._handle = self._handle, None
        if handle is not None:
            handle.dereference()
            logger.debug("Producer(%#x) deleted.", id(self))
