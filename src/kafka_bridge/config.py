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

"""
Configuration translation.

Host configuration arrives as a plain dict whose values are ``str``,
``int`` or ``bool``. It is translated into the string properties librdkafka
understands before any client is created, so a failing property never
leaves a half configured client behind.
"""
import logging
import re
from copy import deepcopy
from typing import Any, Dict, List, NamedTuple, Optional, Tuple

from confluent_kafka import libversion

from ._util import ValidationUtil
from ._version import __version__
from .error import ClientCreationError, ConfigurationError

"""
Binding properties, consumed here and never passed to librdkafka
"""
LOGGER = 'logger'
CHECKPOINT_CB = 'checkpoint_cb'

"""
Well known librdkafka properties
"""
BOOTSTRAP_SERVERS = 'bootstrap.servers'
GROUP_ID = 'group.id'
SOFTWARE_NAME = 'client.software.name'
SOFTWARE_VERSION = 'client.software.version'

CLIENT_SOFTWARE_NAME = 'kafka-bridge'

DEFAULT_LOGGER = logging.getLogger('kafka_bridge.client')

_BROKER_PROTOCOLS = ('plaintext', 'ssl', 'sasl_plaintext', 'sasl_ssl')
_BROKER_RE = re.compile(r'^(?:(?P<proto>[A-Za-z_]+)://)?'
                        r'(?P<host>\[[0-9A-Fa-f:.]+\]|[^:/\[\]]+)'
                        r'(?::(?P<port>[0-9]+))?$')


class PropertyType(object):
    """
    Value types of librdkafka configuration properties.
    """
    STRING = 'string'
    INTEGER = 'integer'
    BOOLEAN = 'boolean'
    ENUM = 'enum'


_TRUE = ('true', 't', '1')
_FALSE = ('false', 'f', '0')


class PropertyDef(NamedTuple):
    """Schema entry for a single configuration property"""
    type: str
    minimum: Optional[int] = None
    maximum: Optional[int] = None
    choices: Tuple[str, ...] = ()

    def check(self, name: str, value: str) -> None:
        """
        Checks an already rendered value against this definition.

        Raises:
            ConfigurationError: if the value is not acceptable.
        """
        if self.type == PropertyType.BOOLEAN:
            if value.lower() not in _TRUE + _FALSE:
                raise ConfigurationError(
                    'Expected bool value for "{}": true or false'.format(name), key=name)

        elif self.type == PropertyType.INTEGER:
            try:
                number = int(value, 10)
            except ValueError:
                raise ConfigurationError(
                    'Invalid value "{}" for configuration property "{}"'.format(value, name), key=name)
            if ((self.minimum is not None and number < self.minimum) or
                    (self.maximum is not None and number > self.maximum)):
                raise ConfigurationError(
                    'Configuration property "{}" value {} is outside allowed range {}..{}'.format(
                        name, number, self.minimum, self.maximum), key=name)

        elif self.type == PropertyType.ENUM:
            if value.lower() not in self.choices:
                raise ConfigurationError(
                    'Invalid value "{}" for configuration property "{}", expected one of: {}'.format(
                        value, name, ', '.join(self.choices)), key=name)


def _int(minimum, maximum):
    return PropertyDef(PropertyType.INTEGER, minimum, maximum)


def _enum(*choices):
    return PropertyDef(PropertyType.ENUM, choices=choices)


_STR = PropertyDef(PropertyType.STRING)
_BOOL = PropertyDef(PropertyType.BOOLEAN)
_INT32_MAX = 2147483647

#: Client (global) level properties. Properties missing here are passed on
#: to librdkafka, which has the final word on them.
GLOBAL_PROPERTIES = {
    'client.id': _STR,
    'bootstrap.servers': _STR,
    'metadata.broker.list': _STR,
    'client.software.name': _STR,
    'client.software.version': _STR,
    'message.max.bytes': _int(1000, 1000000000),
    'receive.message.max.bytes': _int(1000, _INT32_MAX),
    'max.in.flight.requests.per.connection': _int(1, 1000000),
    'max.in.flight': _int(1, 1000000),
    'topic.metadata.refresh.interval.ms': _int(-1, 3600000),
    'metadata.max.age.ms': _int(1, 86400000),
    'socket.timeout.ms': _int(10, 300000),
    'socket.keepalive.enable': _BOOL,
    'socket.nagle.disable': _BOOL,
    'socket.connection.setup.timeout.ms': _int(1000, _INT32_MAX),
    'broker.address.family': _enum('any', 'v4', 'v6'),
    'reconnect.backoff.ms': _int(0, 3600000),
    'reconnect.backoff.max.ms': _int(0, 3600000),
    'statistics.interval.ms': _int(0, 86400000),
    'log_level': _int(0, 7),
    'log.queue': _BOOL,
    'log.thread.name': _BOOL,
    'log.connection.close': _BOOL,
    'debug': _STR,
    'api.version.request': _BOOL,
    'security.protocol': _enum(*_BROKER_PROTOCOLS),
    'ssl.ca.location': _STR,
    'ssl.certificate.location': _STR,
    'ssl.key.location': _STR,
    'ssl.key.password': _STR,
    'sasl.mechanisms': _STR,
    'sasl.mechanism': _STR,
    'sasl.username': _STR,
    'sasl.password': _STR,
    'group.id': _STR,
    'group.instance.id': _STR,
    'partition.assignment.strategy': _STR,
    'session.timeout.ms': _int(1, 3600000),
    'heartbeat.interval.ms': _int(1, 3600000),
    'max.poll.interval.ms': _int(1, 86400000),
    'enable.auto.commit': _BOOL,
    'auto.commit.interval.ms': _int(0, 86400000),
    'enable.auto.offset.store': _BOOL,
    'queued.min.messages': _int(1, 10000000),
    'queued.max.messages.kbytes': _int(1, 2097151),
    'fetch.wait.max.ms': _int(0, 300000),
    'fetch.min.bytes': _int(1, 100000000),
    'fetch.max.bytes': _int(0, 2147483135),
    'enable.partition.eof': _BOOL,
    'check.crcs': _BOOL,
    'isolation.level': _enum('read_uncommitted', 'read_committed'),
    'transactional.id': _STR,
    'enable.idempotence': _BOOL,
    'queue.buffering.max.messages': _int(0, _INT32_MAX),
    'queue.buffering.max.kbytes': _int(1, _INT32_MAX),
    'queue.buffering.max.ms': _int(0, 900000),
    'linger.ms': _int(0, 900000),
    'message.send.max.retries': _int(0, _INT32_MAX),
    'retries': _int(0, _INT32_MAX),
    'retry.backoff.ms': _int(1, 300000),
    'batch.num.messages': _int(1, 1000000),
    'batch.size': _int(1, _INT32_MAX),
    'delivery.report.only.error': _BOOL,
}

#: Topic level properties. librdkafka also accepts these in a client
#: configuration, where they become the default topic configuration.
TOPIC_PROPERTIES = {
    'request.timeout.ms': _int(1, 900000),
    'message.timeout.ms': _int(0, _INT32_MAX),
    'delivery.timeout.ms': _int(0, _INT32_MAX),
    'queuing.strategy': _enum('fifo', 'lifo'),
    'partitioner': _STR,
    'compression.codec': _enum('none', 'gzip', 'snappy', 'lz4', 'zstd', 'inherit'),
    'compression.type': _enum('none', 'gzip', 'snappy', 'lz4', 'zstd'),
    'compression.level': _int(-1, 12),
    'auto.commit.enable': _BOOL,
    'auto.commit.interval.ms': _int(10, 86400000),
    'auto.offset.reset': _enum('smallest', 'earliest', 'beginning',
                               'largest', 'latest', 'end', 'error'),
    'offset.store.path': _STR,
    'offset.store.sync.interval.ms': _int(-1, 86400000),
    'offset.store.method': _enum('file', 'broker'),
    'consume.callback.max.messages': _int(0, 1000000),
    'produce.offset.report': _BOOL,
}


def render_value(key: str, value: Any) -> str:
    """
    Renders a host value as librdkafka property text.

    Booleans render as ``true``/``false`` and numbers as base-10 integer
    text. Floats are accepted only when they hold an integral value.

    Raises:
        ConfigurationError: for any other value type.
    """
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if not value.is_integer():
            raise ConfigurationError(
                'Failed to set {} = {!r} : expected an integer'.format(key, value), key=key)
        return str(int(value))
    if isinstance(value, str):
        return value
    raise ConfigurationError(
        'invalid config value type for "{}": {}'.format(key, type(value).__name__), key=key)


def translate(config: Optional[Dict[str, Any]], topic: bool = False) -> Dict[str, str]:
    """
    Translates a host configuration mapping into librdkafka properties.

    ``None`` is the default configuration. Every property is validated and
    rendered before the result is returned; nothing is applied on failure.

    Args:
        config (dict, optional): Property names mapped to ``str``, ``int``
            or ``bool`` values.

        topic (bool): Translate against the topic level schema.

    Returns:
        dict: Property names mapped to their text values.

    Raises:
        ConfigurationError: naming the first offending property.
    """
    if config is None:
        return {}
    if not hasattr(config, 'items'):
        raise ConfigurationError('expected configuration dict, not {}'.format(type(config).__name__))

    resolved = {}
    for key, value in config.items():
        if not isinstance(key, str):
            raise ConfigurationError(
                'invalid config key type: {}'.format(type(key).__name__), key=key)
        text = render_value(key, value)

        if topic:
            definition = TOPIC_PROPERTIES.get(key)
            if definition is None and key in GLOBAL_PROPERTIES:
                raise ConfigurationError(
                    'Failed to set {} = {} : not a topic configuration property'.format(key, text),
                    key=key)
        else:
            definition = GLOBAL_PROPERTIES.get(key, TOPIC_PROPERTIES.get(key))

        if definition is not None:
            definition.check(key, text)
        resolved[key] = text
    return resolved


def parse_broker_list(broker_list: str) -> List[str]:
    """
    Splits a broker list into its valid ``[proto://]host[:port]`` entries.

    Entries are separated by commas and/or whitespace. Invalid entries are
    dropped, as librdkafka does when brokers are added.

    Raises:
        ClientCreationError: if no valid broker remains.
    """
    ValidationUtil.check_is_string(broker_list, 'broker_list')

    brokers = []
    for entry in re.split(r'[,\s]+', broker_list):
        if not entry:
            continue
        match = _BROKER_RE.match(entry)
        if match is None:
            continue
        proto = match.group('proto')
        if proto is not None and proto.lower() not in _BROKER_PROTOCOLS:
            continue
        port = match.group('port')
        if port is not None and not 0 < int(port) <= 65535:
            continue
        brokers.append(entry)

    if not brokers:
        raise ClientCreationError('invalid broker list')
    return brokers


class Config(object):
    """
    Resolved configuration context.

    Makes a shallow copy of the source configuration, pulls out the binding
    properties listed in ``intercept`` and translates everything else with
    :py:func:`translate`.

    Attributes:
        intercept (dict): Binding level property names and their defaults.
        topic (bool): Validate against the topic level schema.

    Keyword Args:
        - data (dict, optional): source configuration dict

    Raises:
        ConfigurationError if any property fails translation or validation.
    """
    intercept = {}
    topic = False

    def __init__(self, data=None):
        self.data = {}
        self.extra = {}

        # shallow copy to keep referenced types intact
        _data = {} if data is None else dict(_mapping(data))
        self.update(_data)
        self.validate()

    def __getitem__(self, key):
        return self.data[key]

    def __setitem__(self, key, value):
        if key in self.data:
            raise TypeError("{} Property {} already set".format(self, key))
        self.data[key] = value

    def __contains__(self, key):
        return key in self.data

    def __len__(self):
        return len(self.data)

    def update(self, data):
        """
        Translates the source dict into this config.

        This method intentionally mutates the source dict. If called directly
        be sure to copy the original first.
        """
        for prop, default in self.intercept.items():
            self.extra[prop] = data.pop(prop, default)

        for key, value in translate(data, topic=self.topic).items():
            self[key] = value

    def force(self, key, value):
        """
        Sets a property regardless of what the source configuration said.
        """
        definition = next(self._definitions(key), None)
        text = render_value(key, value)
        if definition is not None:
            definition.check(key, text)
        self.data[key] = text

    def setdefault(self, key, value):
        if key not in self.data:
            self.data[key] = render_value(key, value)

    def _definitions(self, key):
        if not self.topic and key in GLOBAL_PROPERTIES:
            yield GLOBAL_PROPERTIES[key]
        if key in TOPIC_PROPERTIES:
            yield TOPIC_PROPERTIES[key]

    def validate(self):
        """
        Validate configuration values are correct.

        Raises:
             ConfigurationError if validation fails.
        """
        pass

    def as_dict(self):
        return deepcopy(self.data)


def _mapping(data):
    if not hasattr(data, 'items'):
        raise ConfigurationError('expected configuration dict, not {}'.format(type(data).__name__))
    return data


class TopicConfig(Config):
    """
    Topic level configuration.
    """
    topic = True


class ClientConfig(Config):
    """
    Client level configuration of a producer or consumer.

    Besides the librdkafka properties this carries the bootstrap servers and
    the client software identification reported to the brokers.

    Binding properties:

    +-------------------+---------------------+------------------------------------------------+
    | Property Name     | Type                | Description                                    |
    +===================+=====================+================================================+
    | ``logger``        | ``logging.Logger``  | Receives librdkafka logs, statistics and error |
    |                   |                     | events. ``None`` disables them.                |
    +-------------------+---------------------+------------------------------------------------+
    | ``checkpoint_cb`` | callable            | Callable(token, failures), called by poll when |
    |                   |                     | a delivery completed.                          |
    +-------------------+---------------------+------------------------------------------------+

    Keyword Args:
        - data (dict, optional): source configuration dict
        - broker_list (str, optional): Comma separated brokers, overrides
          ``bootstrap.servers``.
    """
    intercept = {
        LOGGER: DEFAULT_LOGGER,
        CHECKPOINT_CB: None,
    }

    def __init__(self, data=None, broker_list=None):
        super(ClientConfig, self).__init__(data)

        if broker_list is not None:
            self.data[BOOTSTRAP_SERVERS] = ','.join(parse_broker_list(broker_list))

        self.setdefault(SOFTWARE_NAME, CLIENT_SOFTWARE_NAME)
        self.setdefault(SOFTWARE_VERSION, '{}-librdkafka-{}'.format(__version__, libversion()[0]))

    def validate(self):
        logger = self.extra[LOGGER]
        if logger is not None and not isinstance(logger, logging.Logger):
            raise ConfigurationError(
                '"{}" must be a logging.Logger or None'.format(LOGGER), key=LOGGER)

        checkpoint_cb = self.extra[CHECKPOINT_CB]
        if checkpoint_cb is not None and not callable(checkpoint_cb):
            raise ConfigurationError(
                '"{}" must be callable'.format(CHECKPOINT_CB), key=CHECKPOINT_CB)

    @property
    def logger(self):
        return self.extra[LOGGER]

    @property
    def checkpoint_cb(self):
        return self.extra[CHECKPOINT_CB]


class ConsumerConfig(ClientConfig):
    """
    Client configuration of a consumer, which requires ``group.id``.
    """
    def validate(self):
        super(ConsumerConfig, self).validate()
        if GROUP_ID not in self.data:
            raise ConfigurationError('{} must be set'.format(GROUP_ID), key=GROUP_ID)
