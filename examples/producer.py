#!/usr/bin/env python
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

#
# Example producer reading lines from stdin. Each line is sent with its
# line number as correlation token; poll reports the last token delivered.
#

import sys

import kafka_bridge
from kafka_bridge import PARTITION_UA, RESP_ERR

if __name__ == '__main__':
    if len(sys.argv) != 3:
        sys.stderr.write('Usage: %s <bootstrap-brokers> <topic>\n' % sys.argv[0])
        sys.exit(1)

    broker = sys.argv[1]
    topic = sys.argv[2]

    def checkpoint(token, failures):
        if failures:
            sys.stderr.write('%% %d message(s) failed, last completed line %d\n' % (failures, token))
        else:
            sys.stderr.write('%% Delivered up to line %d\n' % token)

    # Producer configuration
    # See https://github.com/edenhill/librdkafka/blob/master/CONFIGURATION.md
    conf = {'linger.ms': 5, 'checkpoint_cb': checkpoint}

    with kafka_bridge.producer(broker, conf) as p:
        p.create_topic(topic)

        # Read lines from stdin, produce each line to Kafka
        for lineno, line in enumerate(sys.stdin):
            while True:
                err = p.send(topic, PARTITION_UA, lineno, line.rstrip('\n'))
                if err != RESP_ERR['_QUEUE_FULL']:
                    break
                sys.stderr.write('%% Local producer queue is full, waiting for deliveries\n')
                p.poll(1000)

            if err:
                sys.stderr.write('%% Line %d rejected: %s\n' % (lineno, kafka_bridge.err2str(err)))

            # Serve delivery reports from previous sends.
            p.poll(0)

        sys.stderr.write('%% Waiting for outstanding deliveries\n')
        for _ in range(10):
            p.poll(100)
