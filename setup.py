#!/usr/bin/env python

import os
import re
from setuptools import setup, find_packages

work_dir = os.path.dirname(os.path.realpath(__file__))
mod_dir = os.path.join(work_dir, 'src', 'kafka_bridge')


def get_version():
    with open(os.path.join(mod_dir, '_version.py'), 'r') as version_file:
        match = re.search(r"^__version__ = '([^']+)'", version_file.read(), re.M)
    if match is None:
        raise RuntimeError('Unable to find the package version')
    return match.group(1)


def get_long_description():
    readme = os.path.join(work_dir, 'README.md')
    if not os.path.exists(readme):
        return ''
    with open(readme, 'r') as readme_file:
        return readme_file.read()


setup(
    name='kafka-bridge',
    version=get_version(),
    description='Poll driven Kafka producer and consumer handles on top of librdkafka',
    long_description=get_long_description(),
    long_description_content_type='text/markdown',
    license='Apache License 2.0',
    python_requires='>=3.8',
    package_dir={'': 'src'},
    packages=find_packages('src'),
    install_requires=[
        'confluent-kafka>=2.0.2',
    ],
    extras_require={
        'tests': [
            'pytest',
        ],
    },
    classifiers=[
        'License :: OSI Approved :: Apache Software License',
        'Programming Language :: Python :: 3',
        'Topic :: Software Development :: Libraries',
    ],
)
