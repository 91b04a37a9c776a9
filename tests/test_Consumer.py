#!/usr/bin/env python

import logging

import pytest
from confluent_kafka import KafkaError, KafkaException

from kafka_bridge import (
    ASSIGN,
    RECEIVE_TIMEOUT,
    SUBSCRIBE,
    ClientCreationError,
    ConfigurationError,
    Consumer,
    ConsumerTopicError,
    InvalidPartitionError,
    ReceivedMessage,
    parse_topic_specifiers,
)
from tests.common import FakeMessage, FakeNative


@pytest.fixture
def native():
    return FakeNative()


@pytest.fixture
def consumer(native):
    c = Consumer('localhost:9092', ['test'], {'group.id': 'test'}, native=native)
    yield c
    c.close()


def test_parse_subscription():
    assignment = parse_topic_specifiers(['a', 'b'])

    assert assignment.mode == SUBSCRIBE
    assert assignment.partitions == (('a', -1), ('b', -1))
    assert assignment.topics == ['a', 'b']


def test_parse_assignment():
    """ A single partition switches the whole list to assignment """
    assignment = parse_topic_specifiers(['a', 'b:2', 'c:2147483647'])

    assert assignment.mode == ASSIGN
    assert assignment.partitions == (('a', -1), ('b', 2), ('c', 2147483647))


@pytest.mark.parametrize("specifier, match", [
    ('b:4294967296', '> INT32_MAX'),
    ('b:-1', '< 0'),
    ('b:x', 'invalid topic partition "b:x"'),
    ('b:', 'invalid topic partition'),
    ('b:2_0', 'invalid topic partition "b:2_0"'),
    ('b: 2', 'invalid topic partition "b: 2"'),
    ('b:+2', r'invalid topic partition "b:\+2"'),
    ('b:\u0663', 'invalid topic partition'),
])
def test_parse_invalid_partition(specifier, match):
    with pytest.raises(InvalidPartitionError, match=match) as e:
        parse_topic_specifiers(['a', specifier])
    assert e.value.specifier == specifier


@pytest.mark.parametrize("topics, exc", [
    ([], ValueError),
    ('a', TypeError),
    (None, TypeError),
    (['a', 1], TypeError),
])
def test_parse_invalid_topics(topics, exc):
    with pytest.raises(exc):
        parse_topic_specifiers(topics)


def test_subscribe(native):
    c = Consumer('localhost:9092', ['a', 'b'], {'group.id': 'test'}, native=native)

    assert native.consumer.subscribed == ['a', 'b']
    assert native.consumer.assigned is None
    c.close()


def test_assign(native):
    c = Consumer('localhost:9092', ['a', 'b:2'], {'group.id': 'test'}, native=native)

    assert native.consumer.subscribed is None
    assert [(tp.topic, tp.partition) for tp in native.consumer.assigned] == [('a', -1), ('b', 2)]
    c.close()


def test_group_id_required(native):
    with pytest.raises(ConfigurationError, match='group.id'):
        Consumer('localhost:9092', ['a'], {'session.timeout.ms': 6000}, native=native)

    with pytest.raises(ConfigurationError):
        Consumer('localhost:9092', ['a'], None, native=native)

    assert native.consumers == []


def test_invalid_partition_creates_nothing(native):
    with pytest.raises(InvalidPartitionError):
        Consumer('localhost:9092', ['a:-5'], {'group.id': 'test'}, native=native)

    assert native.consumers == []


def test_forced_topic_config(native):
    """ Broker offset storage and auto commit can not be turned off """
    c = Consumer('localhost:9092', ['a'], {'group.id': 'test'},
                 {'offset.store.method': 'file',
                  'auto.commit.enable': False,
                  'auto.offset.reset': 'earliest'},
                 native=native)

    conf = native.consumer.conf
    assert conf['offset.store.method'] == 'broker'
    assert conf['auto.commit.enable'] == 'true'
    assert conf['auto.offset.reset'] == 'earliest'
    assert conf['group.id'] == 'test'
    c.close()


def test_bind_failure():
    native = FakeNative(bind_error=KafkaException(KafkaError(KafkaError._INVALID_ARG, 'bad topic')))

    with pytest.raises(ClientCreationError, match='rd_kafka_subscribe failed: bad topic'):
        Consumer('localhost:9092', ['a'], {'group.id': 'test'}, native=native)

    assert native.consumer.closed == 1


def test_receive_nothing(consumer, native):
    assert consumer.receive() == ReceivedMessage(None, None, None, None)
    assert native.consumer.polls == [RECEIVE_TIMEOUT]


def test_receive(consumer, native):
    native.consumer.messages = [
        FakeMessage('test', 3, 100, key=b'k', value=b'v'),
        FakeMessage('test', 0, 101, key=b'', value=None),
        FakeMessage('test', 1, 102, value=b''),
    ]

    assert consumer.receive() == (b'v', 'test', 3, b'k')
    assert consumer.receive() == (b'', 'test', 0, None)
    assert consumer.receive() == (b'', 'test', 1, None)
    assert consumer.receive() == (None, None, None, None)


def test_receive_unknown_partition(consumer, native):
    native.consumer.messages = [
        FakeMessage('test', 7, 42, error=KafkaError(KafkaError._UNKNOWN_PARTITION, 'Unknown partition')),
    ]

    with pytest.raises(ConsumerTopicError, match='topic: test partition: 7 offset: 42 err: Unknown partition') as e:
        consumer.receive()

    assert e.value.code == KafkaError._UNKNOWN_PARTITION
    assert (e.value.topic, e.value.partition, e.value.offset) == ('test', 7, 42)


def test_receive_unknown_topic_without_topic(consumer, native):
    native.consumer.messages = [
        FakeMessage(error=KafkaError(KafkaError._UNKNOWN_TOPIC, 'Unknown topic')),
    ]

    with pytest.raises(ConsumerTopicError, match='_UNKNOWN_TOPIC err: Unknown topic') as e:
        consumer.receive()
    assert e.value.topic is None


def test_receive_partition_eof(consumer, native):
    native.consumer.messages = [
        FakeMessage('test', 0, 5, error=KafkaError(KafkaError._PARTITION_EOF, 'Reached end')),
    ]

    assert consumer.receive() == ReceivedMessage()


def test_receive_other_error(consumer, native, caplog):
    """ Errors other than unknown topics and partitions are logged only """
    native.consumer.messages = [
        FakeMessage(error=KafkaError(KafkaError._TRANSPORT, 'Broker transport failure')),
    ]

    with caplog.at_level(logging.WARNING, logger='kafka_bridge.consumer'):
        assert consumer.receive() == ReceivedMessage()

    assert 'Broker transport failure' in caplog.text


def test_consumer_confluent():
    """ The forced topic configuration is accepted by the real client """
    c = Consumer('localhost:65531', ['a', 'b:2'], {'group.id': 'test',
                                                   'session.timeout.ms': 6000,
                                                   'socket.timeout.ms': 100})
    assert c.assignment.mode == ASSIGN
    assert c.receive() == ReceivedMessage()
    c.close()
    assert c.closed


def test_close(native):
    c = Consumer('localhost:9092', ['test'], {'group.id': 'test'}, native=native)
    c.close()
    c.close()

    assert c.closed
    assert native.consumer.closed == 1

    with pytest.raises(RuntimeError):
        c.receive()


def test_context_manager(native):
    with Consumer('localhost:9092', ['test'], {'group.id': 'test'}, native=native) as c:
        assert not c.closed

    assert native.consumer.closed == 1
