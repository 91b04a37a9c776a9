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
from typing import List, NamedTuple, Optional, Tuple

from confluent_kafka import KafkaError, KafkaException

from ._core import CONSUMER, ClientHandle
from ._util import ValidationUtil
from ._util.validation_util import INT32_MAX
from .config import TopicConfig
from .error import ClientCreationError, ConsumerTopicError, InvalidPartitionError

logger = logging.getLogger(__name__)

#: Seconds :py:meth:`Consumer.receive` waits for a message.
RECEIVE_TIMEOUT = 1.0

PARTITION_UA = -1

SUBSCRIBE = 'subscribe'
ASSIGN = 'assign'

#: Topic properties every consumer runs with, set after the caller's own.
FORCED_TOPIC_CONFIG = (
    ('offset.store.method', 'broker'),
    ('auto.commit.enable', True),
)

_ESCALATED_ERRORS = (KafkaError._UNKNOWN_PARTITION, KafkaError._UNKNOWN_TOPIC)


class ConsumerAssignment(NamedTuple):
    """
    Topics a consumer reads from.

    ``mode`` is ``SUBSCRIBE`` when no entry names a partition, the group
    then decides which partitions this consumer gets. As soon as one entry
    names a partition the whole list is assigned explicitly (``ASSIGN``);
    entries without a partition keep ``PARTITION_UA``.
    """
    mode: str
    partitions: Tuple[Tuple[str, int], ...]

    @property
    def topics(self) -> List[str]:
        return [topic for topic, _ in self.partitions]


class ReceivedMessage(NamedTuple):
    """Result of :py:meth:`Consumer.receive`, all ``None`` when there was no message"""
    payload: Optional[bytes] = None
    topic: Optional[str] = None
    partition: Optional[int] = None
    key: Optional[bytes] = None


def _parse_partition(specifier: str, text: str) -> int:
    digits = text[1:] if text.startswith('-') else text
    if not (digits.isascii() and digits.isdigit()):
        raise InvalidPartitionError('invalid topic partition "{}"'.format(specifier), specifier)
    partition = int(text, 10)
    if partition > INT32_MAX:
        raise InvalidPartitionError('invalid topic partition > INT32_MAX', specifier)
    if partition < 0:
        raise InvalidPartitionError('invalid topic partition < 0', specifier)
    return partition


def parse_topic_specifiers(topics) -> ConsumerAssignment:
    """
    Parses a list of ``topic`` and ``topic:partition`` specifiers.

    Args:
        topics (list(str)): Topic specifiers, at least one.

    Returns:
        ConsumerAssignment: the topics in the given order and the mode.

    Raises:
        TypeError: if ``topics`` is not a list of strings.

        ValueError: if ``topics`` is empty.

        InvalidPartitionError: if a partition is not an integer in
            ``0 .. 2**31-1``.
    """
    if not isinstance(topics, (list, tuple)):
        raise TypeError("topics must be an array of strings")
    if len(topics) == 0:
        raise ValueError("the topics array is empty")

    mode = SUBSCRIBE
    partitions = []
    for specifier in topics:
        if not isinstance(specifier, str):
            raise TypeError("topics must be an array of strings")
        topic, sep, text = specifier.partition(':')
        if sep:
            partitions.append((topic, _parse_partition(specifier, text)))
            mode = ASSIGN
        else:
            partitions.append((topic, PARTITION_UA))
    return ConsumerAssignment(mode, tuple(partitions))


class Consumer(object):
    """
    Group consumer with a blocking, bounded receive.

    Offsets are stored on the broker and committed automatically; this is
    forced for every consumer, whatever the topic configuration says.

    Args:
        broker_list (str): Comma separated list of brokers.

        topics (list(str)): ``topic`` or ``topic:partition`` specifiers. Any
            specifier with a partition switches the whole list to explicit
            assignment, otherwise the topics are subscribed to.

        config (dict): Consumer configuration, ``group.id`` is required.

        topic_config (dict, optional): Default topic configuration.

    Raises:
        ConfigurationError: if the configuration is invalid or lacks
            ``group.id``.

        InvalidPartitionError: if a topic specifier is invalid.

        ClientCreationError: if the client could not be created or
            subscribed.
    """

    def __init__(self, broker_list, topics, config, topic_config=None, native=None):
        self.assignment = parse_topic_specifiers(topics)
        ValidationUtil.check_optional_mapping(topic_config, 'topic_config')

        tconf = TopicConfig(topic_config)
        for key, value in FORCED_TOPIC_CONFIG:
            tconf.force(key, value)

        self._handle = ClientHandle.create(CONSUMER, broker_list, config,
                                           topic_config=tconf, native=native)
        try:
            self._bind()
        except ClientCreationError:
            self.close()
            raise

    def _bind(self):
        try:
            if self.assignment.mode == ASSIGN:
                self._handle.assign(self.assignment.partitions)
            else:
                self._handle.subscribe(self.assignment.topics)
        except KafkaException as e:
            error = e.args[0]
            raise ClientCreationError('rd_kafka_{} failed: {}'.format(self.assignment.mode, error.str()),
                                      error.code())
        logger.debug("Consumer(%#x) %s %s", id(self), self.assignment.mode,
                     ', '.join('{}:{}'.format(t, p) for t, p in self.assignment.partitions))

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()
        return False

    @property
    def closed(self):
        return self._handle is None

    def receive(self):
        """
        Wait up to ``RECEIVE_TIMEOUT`` for the next message.

        Returns:
            ReceivedMessage: ``(payload, topic, partition, key)``. All fields
            are ``None`` if no message arrived in time, and also for consumer
            errors other than an unknown topic or partition, which are only
            logged. ``key`` is ``None`` for messages without a key.

        Raises:
            ConsumerTopicError: if the broker reported an unknown topic or
                partition.
        """
        if self._handle is None:
            raise RuntimeError('consumer is closed')

        msg = self._handle.consume(RECEIVE_TIMEOUT)
        if msg is None:
            return ReceivedMessage()

        error = msg.error()
        if error is not None:
            return self._on_error(msg, error)

        value = msg.value()
        key = msg.key()
        return ReceivedMessage(value if value is not None else b'',
                               msg.topic(),
                               msg.partition(),
                               key if key else None)

    def _on_error(self, msg, error):
        if error.code() in _ESCALATED_ERRORS:
            topic = msg.topic()
            if topic is not None:
                raise ConsumerTopicError(
                    error.code(),
                    'topic: {} partition: {} offset: {} err: {}'.format(
                        topic, msg.partition(), msg.offset(), error.str()),
                    topic=topic, partition=msg.partition(), offset=msg.offset())
            raise ConsumerTopicError(error.code(), '{} err: {}'.format(error.name(), error.str()))

        if error.code() == KafkaError._PARTITION_EOF:
            logger.debug("Consumer(%#x): %s", id(self), error.str())
        else:
            logger.warning("Consumer(%#x): consumer error %s: %s", id(self), error.name(), error.str())
        return ReceivedMessage()

    def close(self):
        """
        Closes the consumer and releases its client handle.
        """
        handle, self._handle = self._handle, None
        if handle is not None:
            handle.dereference()
