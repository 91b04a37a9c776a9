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
# Example group consumer. Topics given as topic:partition are assigned
# explicitly, plain topic names are subscribed to.
#

import logging
import sys

import kafka_bridge
from kafka_bridge import ConsumerTopicError

if __name__ == '__main__':
    if len(sys.argv) < 4:
        sys.stderr.write('Usage: %s <bootstrap-brokers> <group> <topic[:partition]> ..\n' % sys.argv[0])
        sys.exit(1)

    broker = sys.argv[1]
    group = sys.argv[2]
    topics = sys.argv[3:]

    logging.basicConfig(format='%(asctime)-15s %(levelname)-8s %(message)s', level=logging.INFO)

    # Consumer configuration
    # See https://github.com/edenhill/librdkafka/blob/master/CONFIGURATION.md
    conf = {'group.id': group,
            'session.timeout.ms': 6000,
            'logger': logging.getLogger('consumer')}
    topic_conf = {'auto.offset.reset': 'smallest'}

    c = kafka_bridge.consumer(broker, topics, conf, topic_conf)

    # Read messages from Kafka, print to stdout
    try:
        while True:
            payload, topic, partition, key = c.receive()
            if topic is None:
                continue
            sys.stderr.write('%% %s [%d] with key %s:\n' % (topic, partition, str(key)))
            print(payload)

    except ConsumerTopicError as e:
        sys.stderr.write('%% %s\n' % e)

    except KeyboardInterrupt:
        sys.stderr.write('%% Aborted by user\n')

    # Close down consumer to commit final offsets.
    c.close()
