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

from typing import Any, Callable, Dict, List, NamedTuple, Optional

from confluent_kafka import Consumer as _ConsumerImpl
from confluent_kafka import Producer as _ProducerImpl
from confluent_kafka import TopicPartition

from .error import ConfigurationError


class NativeTopic(NamedTuple):
    """Topic handle as seen by the client library"""
    name: str
    config: Dict[str, str]


class ConfluentNative(object):
    """
    librdkafka access through the confluent_kafka binding.

    Clients are returned as-is; the core calls their ``poll``, ``flush``,
    ``subscribe``, ``assign`` and ``close`` methods directly. Everything the
    binding does not model one to one (topic handles, payload ownership) is
    handled here.
    """

    def new_producer(self, conf: Dict[str, Any]) -> _ProducerImpl:
        return _ProducerImpl(conf)

    def new_consumer(self, conf: Dict[str, Any]) -> _ConsumerImpl:
        return _ConsumerImpl(conf)

    def new_topic(self, client: Any, name: str, conf: Dict[str, str],
                  client_conf: Dict[str, str]) -> NativeTopic:
        """
        Opens a topic handle.

        The binding keeps a single default topic configuration per client,
        set when the client was created. A topic property can therefore only
        be accepted here when the client already carries the same value.

        Raises:
            ConfigurationError: for a property the client cannot honour.
        """
        for key, value in conf.items():
            current = client_conf.get(key)
            if current != value:
                raise ConfigurationError(
                    'Failed to set {} = {} : topic "{}" cannot override the client '
                    'value ({}), configure it on the client instead'.format(
                        key, value, name, current if current is not None else 'default'),
                    key=key)
        return NativeTopic(name, dict(conf))

    def destroy_topic(self, topic: NativeTopic) -> None:
        pass

    def produce(self, client: Any, topic: NativeTopic, value: Any, partition: int,
                on_delivery: Callable, owned: bool = False) -> None:
        """
        Enqueues a message for asynchronous delivery.

        The binding always copies the payload; ``owned`` tells the library
        that the buffer was assembled for this message only and is not
        referenced by the caller afterwards.

        Raises:
            BufferError: if the local queue is full.

            KafkaException: for any other synchronous rejection.
        """
        # confluent_kafka only accepts str and bytes, never a memoryview
        if value is not None and not isinstance(value, (bytes, str)):
            value = bytes(value)
        client.produce(topic.name, value=value, partition=partition, on_delivery=on_delivery)

    def topic_partitions(self, assignment: List[tuple]) -> List[TopicPartition]:
        return [TopicPartition(topic, partition) for topic, partition in assignment]

    def subscribe(self, client: Any, topics: List[str]) -> None:
        client.subscribe(topics)

    def assign(self, client: Any, assignment: List[tuple]) -> None:
        client.assign(self.topic_partitions(assignment))


def default_native(native: Optional[Any] = None) -> Any:
    return native if native is not None else ConfluentNative()
