#!/usr/bin/env python

import pytest

from kafka_bridge import PARTITION_UA, InvalidTopicError, Producer
from kafka_bridge._zerocopy import Assembly, assemble, segments_of
from tests.common import FakeNative


class Message(object):
    def __init__(self, *segments):
        self.segments = segments

    def zero_copy(self):
        return list(self.segments)


@pytest.fixture
def native():
    return FakeNative()


@pytest.fixture
def producer(native):
    p = Producer('localhost:9092', native=native)
    p.create_topic('test')
    yield p
    p.close()


def test_single_segment_not_copied():
    segment = b'payload'
    assembly = assemble([segment])

    assert assembly.value is segment
    assert assembly == Assembly(segment, 7, 1, owned=False)


def test_multiple_segments_joined():
    assembly = assemble([b'ab', b'cd', b'ef'])

    assert assembly == Assembly(b'abcdef', 6, 3, owned=True)


def test_mixed_segments():
    """ str, buffers and (buffer, length) pairs can be mixed """
    assembly = assemble(['ab', memoryview(b'cd'), (bytearray(b'efgh'), 2), b'', 'ü'])

    assert assembly.value == b'abcdef\xc3\xbc'
    assert assembly.length == 8
    assert assembly.segments == 5


def test_buffer_length_pair():
    assembly = assemble([(bytearray(b'xyzw'), 3)])

    assert bytes(assembly.value) == b'xyz'
    assert assembly.length == 3
    assert not assembly.owned


@pytest.mark.parametrize("message", [[], [b''], ['', b'', (b'abc', 0)], Message()])
def test_no_data(message):
    assert assemble(message) is None


def test_segments_of():
    assert segments_of(b'abc') == (b'abc',)
    assert segments_of('abc') == ('abc',)
    assert segments_of(Message(b'a', b'b')) == [b'a', b'b']


@pytest.mark.parametrize("message", [[1], [None], [b'ok', object()], Message(3.5)])
def test_invalid_segment(message):
    with pytest.raises(TypeError, match='invalid zero copy return'):
        assemble(message)


def test_invalid_segment_length():
    with pytest.raises(ValueError):
        assemble([(b'abc', 4)])
    with pytest.raises(ValueError):
        assemble([(b'abc', -1)])


def test_send_segments(producer, native):
    """ Several segments are produced as one message """
    assert producer.send_segments('test', 1, 8, [b'ab', b'cd', b'ef']) == 0

    call = native.produced[-1]
    assert call.value == b'abcdef'
    assert call.partition == 1
    assert call.owned
    assert producer.poll() == (8, 0)


def test_send_single_segment(producer, native):
    segment = b'only'
    assert producer.send_segments('test', 0, 1, Message(segment)) == 0

    call = native.produced[-1]
    assert call.value is segment
    assert not call.owned


def test_send_writable_segment(producer, native):
    """ Writable buffers reach the client as bytes """
    assert producer.send_segments('test', 0, 1, [(bytearray(b'abcd'), 2)]) == 0

    msg, _ = native.producer.queue[0]
    assert msg.value() == b'ab'
    assert isinstance(msg.value(), bytes)
    assert producer.poll() == (1, 0)


@pytest.mark.parametrize("message", [[(b'efgh', 2)], [memoryview(b'xy')], [bytearray(b'xy')]])
def test_send_buffer_segment(producer, native, message):
    """ Read-only and writable buffer views reach the client as bytes """
    assert producer.send_segments('test', 0, 3, message) == 0

    msg, _ = native.producer.queue[0]
    assert type(msg.value()) is bytes
    assert len(msg.value()) == 2
    assert producer.poll() == (3, 0)


@pytest.mark.parametrize("message", [[(b'efgh', 2)], [memoryview(b'xyz')], [b'ab', (b'cdef', 2)]])
def test_send_segments_confluent(message):
    """ Buffer segments are accepted by the real client """
    p = Producer('localhost:65531', {'socket.timeout.ms': 10, 'message.timeout.ms': 10})
    p.create_topic('test')

    assert p.send_segments('test', PARTITION_UA, 1, message) == 0

    p.poll(0)
    p.close()


def test_send_empty_message(producer, native):
    assert producer.send_segments('test', 0, 1, []) == 0
    assert native.produced == []
    assert producer.poll() == (None, 0)


def test_send_segments_unknown_topic(producer):
    with pytest.raises(InvalidTopicError):
        producer.send_segments('nope', 0, 1, [b'a'])
