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
from collections import namedtuple

from confluent_kafka import KafkaError

from kafka_bridge._native import ConfluentNative

ProduceCall = namedtuple('ProduceCall', ['topic', 'value', 'partition', 'owned'])


class CountingFilter(logging.Filter):
    def __init__(self, name):
        super(CountingFilter, self).__init__(name)
        self.cnt = 0
        self.messages = []

    def filter(self, record):
        self.cnt += 1
        self.messages.append(record.getMessage())
        return True


class FakeMessage(object):
    """
    Stand-in for confluent_kafka.Message.
    """
    def __init__(self, topic=None, partition=None, offset=None,
                 key=None, value=None, error=None):
        self._topic = topic
        self._partition = partition
        self._offset = offset
        self._key = key
        self._value = value
        self._error = error

    def topic(self):
        return self._topic

    def partition(self):
        return self._partition

    def offset(self):
        return self._offset

    def key(self):
        return self._key

    def value(self):
        return self._value

    def error(self):
        return self._error


class FakeProducerClient(object):
    """
    Producer that never talks to a broker.

    Produced messages wait in ``queue`` until the next ``poll``, which reports
    all of them. The next ``len(failures)`` reports carry those errors.
    """
    def __init__(self, conf):
        self.conf = conf
        self.queue = []
        self.failures = []
        self.polls = []
        self.flushes = []
        self.produce_error = None
        self.stuck = False

    def __len__(self):
        return len(self.queue)

    def produce(self, topic, value=None, partition=-1, on_delivery=None):
        if value is not None and not isinstance(value, (bytes, str)):
            raise TypeError("argument 2 must be read-only bytes-like object, not %s"
                            % type(value).__name__)
        if self.produce_error is not None:
            raise self.produce_error
        self.queue.append((FakeMessage(topic, partition, value=value), on_delivery))

    def fail(self, count=1, code=KafkaError._MSG_TIMED_OUT):
        self.failures.extend(KafkaError(code) for _ in range(count))

    def _deliver(self):
        served, self.queue = self.queue, []
        for msg, on_delivery in served:
            error = self.failures.pop(0) if self.failures else None
            on_delivery(error, msg)
        return len(served)

    def poll(self, timeout=None):
        self.polls.append(timeout)
        return self._deliver()

    def flush(self, timeout=None):
        self.flushes.append(timeout)
        if self.stuck:
            return len(self.queue)
        self._deliver()
        return 0


class FakeConsumerClient(object):
    """
    Consumer returning the messages queued in ``messages``, one per poll.
    """
    def __init__(self, conf):
        self.conf = conf
        self.messages = []
        self.polls = []
        self.subscribed = None
        self.assigned = None
        self.bind_error = None
        self.closed = 0

    def subscribe(self, topics):
        if self.bind_error is not None:
            raise self.bind_error
        self.subscribed = list(topics)

    def assign(self, partitions):
        if self.bind_error is not None:
            raise self.bind_error
        self.assigned = list(partitions)

    def poll(self, timeout=None):
        self.polls.append(timeout)
        return self.messages.pop(0) if self.messages else None

    def close(self):
        self.closed += 1


class FakeNative(ConfluentNative):
    """
    Client library adapter recording every call and handing out fake clients.

    Topic handling and payload conversion are those of the real adapter.
    """
    def __init__(self, create_error=None, bind_error=None):
        self.create_error = create_error
        self.bind_error = bind_error
        self.producers = []
        self.consumers = []
        self.opened = []
        self.destroyed = []
        self.produced = []

    @property
    def producer(self):
        return self.producers[-1]

    @property
    def consumer(self):
        return self.consumers[-1]

    def new_producer(self, conf):
        if self.create_error is not None:
            raise self.create_error
        client = FakeProducerClient(conf)
        self.producers.append(client)
        return client

    def new_consumer(self, conf):
        if self.create_error is not None:
            raise self.create_error
        client = FakeConsumerClient(conf)
        client.bind_error = self.bind_error
        self.consumers.append(client)
        return client

    def new_topic(self, client, name, conf, client_conf):
        topic = super(FakeNative, self).new_topic(client, name, conf, client_conf)
        self.opened.append(topic)
        return topic

    def destroy_topic(self, topic):
        self.destroyed.append(topic)

    def produce(self, client, topic, value, partition, on_delivery, owned=False):
        super(FakeNative, self).produce(client, topic, value, partition, on_delivery, owned=owned)
        self.produced.append(ProduceCall(topic.name, value, partition, owned))
