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
from confluent_kafka import KafkaException, KafkaError


class BridgeError(KafkaException):
    """
    Base class for all errors raised by the bridge.

    The first argument is always a :py:class:`KafkaError` so callers can
    inspect ``e.args[0].code()`` exactly as they would for errors raised by
    the underlying client.

    Args:
        error_code (int): librdkafka error code.

        reason (str, optional): Human readable description. Defaults to the
            librdkafka description of ``error_code``.

    """
    def __init__(self, error_code, reason=None):
        if reason is not None:
            kafka_error = KafkaError(error_code, reason)
        else:
            kafka_error = KafkaError(error_code)
        super(BridgeError, self).__init__(kafka_error)

    @property
    def code(self):
        return self.args[0].code()

    @property
    def name(self):
        return self.args[0].name()

    @property
    def reason(self):
        return self.args[0].str()

    def __str__(self):
        return self.reason


class ConfigurationError(BridgeError):
    """
    A configuration property could not be applied.

    Raised for unsupported key or value types, values outside the property
    schema, missing required properties and settings rejected by librdkafka.

    Args:
        reason (str): Description, including librdkafka's own rejection
            message where there is one.

        key (str, optional): The offending property name.

    """
    def __init__(self, reason, key=None):
        super(ConfigurationError, self).__init__(KafkaError._INVALID_ARG, reason)
        self.key = key


class InvalidPartitionError(ConfigurationError):
    """
    A ``topic:partition`` consumer specifier carried a partition outside
    ``0 .. 2**31-1`` or one that is not an integer.
    """
    def __init__(self, reason, specifier=None):
        super(InvalidPartitionError, self).__init__(reason)
        self.specifier = specifier


class ClientCreationError(BridgeError):
    """
    The native client could not be created, or no usable broker was given.

    No handle exists after this error.
    """
    def __init__(self, reason, error_code=KafkaError._FAIL):
        super(ClientCreationError, self).__init__(error_code, reason)


class InvalidTopicError(BridgeError):
    """
    A send was issued for a topic the producer has not created.
    """
    def __init__(self, topic):
        super(InvalidTopicError, self).__init__(KafkaError._UNKNOWN_TOPIC,
                                                "invalid topic: {}".format(topic))
        self.topic = topic


class ConsumerTopicError(BridgeError):
    """
    The broker reported an unknown topic or partition while receiving.

    Args:
        error_code (int): librdkafka error code.

        reason (str): Description including topic, partition and offset.

        topic (str, optional): Topic name, when known.

        partition (int, optional): Partition, when known.

        offset (int, optional): Offset, when known.

    """
    def __init__(self, error_code, reason, topic=None, partition=None, offset=None):
        super(ConsumerTopicError, self).__init__(error_code, reason)
        self.topic = topic
        self.partition = partition
        self.offset = offset
