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

from confluent_kafka import KafkaError, libversion

from ._core import FLUSH_TIMEOUT_MS, ClientHandle, DeliveryResult, PollResult
from ._version import __version__
from .consumer import (
    ASSIGN,
    RECEIVE_TIMEOUT,
    SUBSCRIBE,
    Consumer,
    ConsumerAssignment,
    ReceivedMessage,
    parse_topic_specifiers,
)
from .error import (
    BridgeError,
    ClientCreationError,
    ConfigurationError,
    ConsumerTopicError,
    InvalidPartitionError,
    InvalidTopicError,
)
from .producer import PARTITION_UA, Producer, Topic

__all__ = [
    "ASSIGN",
    "BridgeError",
    "ClientCreationError",
    "ClientHandle",
    "ConfigurationError",
    "Consumer",
    "ConsumerAssignment",
    "ConsumerTopicError",
    "DeliveryResult",
    "FLUSH_TIMEOUT_MS",
    "InvalidPartitionError",
    "InvalidTopicError",
    "PARTITION_UA",
    "PollResult",
    "Producer",
    "RECEIVE_TIMEOUT",
    "RESP_ERR",
    "ReceivedMessage",
    "SUBSCRIBE",
    "Topic",
    "consumer",
    "err2str",
    "parse_topic_specifiers",
    "producer",
    "version",
]


def _error_codes():
    return {name: getattr(KafkaError, name) for name in dir(KafkaError)
            if name.lstrip('_').isupper() and isinstance(getattr(KafkaError, name), int)}


#: librdkafka error names mapped to their codes, e.g. ``RESP_ERR['_QUEUE_FULL']``.
RESP_ERR = _error_codes()


def err2str(code):
    """
    Returns librdkafka's description of an error code, such as the non-zero
    value returned by :py:meth:`Producer.send`.
    """
    return KafkaError(code).str()


def version():
    """
    Returns the version of this package and of the librdkafka it runs on.
    """
    return '{} (librdkafka {})'.format(__version__, libversion()[0])


def producer(broker_list, config=None, topic_config=None):
    """
    Creates a :py:class:`Producer`.

    Args:
        broker_list (str): Comma separated list of brokers.

        config (dict, optional): Producer configuration.

        topic_config (dict, optional): Default topic configuration.
    """
    return Producer(broker_list, config, topic_config)


def consumer(broker_list, topics, config, topic_config=None):
    """
    Creates a :py:class:`Consumer`.

    Args:
        broker_list (str): Comma separated list of brokers.

        topics (list(str)): ``topic`` or ``topic:partition`` specifiers.

        config (dict): Consumer configuration including ``group.id``.

        topic_config (dict, optional): Default topic configuration.
    """
    return Consumer(broker_list, topics, config, topic_config)
