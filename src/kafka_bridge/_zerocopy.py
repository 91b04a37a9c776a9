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

from typing import Any, Iterable, NamedTuple, Optional, Tuple, Union

Segment = Union[str, bytes, bytearray, memoryview, Tuple[Any, int]]

_BUFFER_TYPES = (str, bytes, bytearray, memoryview)


class Assembly(NamedTuple):
    """A message payload ready to be produced"""
    value: Any                  # single segment as given, or the joined bytes
    length: int                 # payload size in bytes
    segments: int               # number of segments the payload was built from
    owned: bool = False         # True if value was allocated for this message only


def _segment(item: Any) -> Tuple[Any, int]:
    if isinstance(item, str):
        return item, len(item.encode('utf-8'))

    if isinstance(item, tuple) and len(item) == 2 and isinstance(item[1], int):
        buf, length = item
        try:
            view = memoryview(buf).cast('B')
        except TypeError:
            raise TypeError('invalid zero copy return')
        if length < 0 or length > view.nbytes:
            raise ValueError('segment length {} out of range 0..{}'.format(length, view.nbytes))
        return view[:length], length

    try:
        return item, memoryview(item).nbytes
    except TypeError:
        raise TypeError('invalid zero copy return')


def segments_of(message: Any) -> Iterable[Segment]:
    """
    Returns the segments of a message.

    Objects exposing a ``zero_copy()`` method are asked for their segments;
    a single string or bytes-like object is one segment.
    """
    zero_copy = getattr(message, 'zero_copy', None)
    if callable(zero_copy):
        return zero_copy()
    if isinstance(message, _BUFFER_TYPES):
        return (message,)
    return message


def assemble(message: Any) -> Optional[Assembly]:
    """
    Builds a single payload out of one or more buffer segments.

    A single segment is used as-is, the client library makes its own copy
    when the message is enqueued. Multiple segments are copied, in order,
    into one new buffer sized to their total length, which is then handed
    over to the client library.

    Args:
        message: Iterable of segments, a single segment, or an object with
            a ``zero_copy()`` method returning the segments. A segment is a
            ``str``, a bytes-like object or a ``(buffer, length)`` pair.

    Returns:
        Assembly: The payload, or ``None`` if there are no segments or they
        hold no data.

    Raises:
        TypeError: for a segment of any other type.
    """
    parts = [_segment(item) for item in segments_of(message)]
    total = sum(length for _, length in parts)

    if not parts or total == 0:
        return None

    if len(parts) == 1:
        value, length = parts[0]
        return Assembly(value, length, 1)

    value = b''.join(part.encode('utf-8') if isinstance(part, str) else part
                     for part, length in parts if length > 0)
    return Assembly(value, total, len(parts), owned=True)
