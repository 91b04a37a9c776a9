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

from typing import Any, Optional

INT32_MAX = 2 ** 31 - 1
INT32_MIN = -2 ** 31
TOKEN_MAX = 2 ** 64 - 1


class ValidationUtil:
    @staticmethod
    def check_is_string(value: Any, param: str) -> None:
        if not isinstance(value, str):
            raise TypeError("Expected %s to be a string" % (param,))

    @staticmethod
    def check_is_int(value: Any, param: str) -> None:
        # bool is an int subclass but never a valid partition or token
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError("Expected %s to be an int" % (param,))

    @staticmethod
    def check_partition(partition: Any) -> None:
        ValidationUtil.check_is_int(partition, 'partition')
        if partition < INT32_MIN or partition > INT32_MAX:
            raise ValueError("partition out of range")

    @staticmethod
    def check_token(token: Any) -> None:
        ValidationUtil.check_is_int(token, 'token')
        if token < 0 or token > TOKEN_MAX:
            raise ValueError("sequence_id out of range")

    @staticmethod
    def check_timeout(timeout: Any) -> None:
        ValidationUtil.check_is_int(timeout, 'timeout')
        if timeout < 0:
            raise ValueError("timeout must not be negative")

    @staticmethod
    def check_optional_mapping(value: Optional[Any], param: str) -> None:
        if value is not None and not hasattr(value, 'items'):
            raise TypeError("Expected %s to be a dict or None" % (param,))
