# Copyright 2026 The Kubernetes Authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Resolve settings from defaults, a YAML file, the environment and flags."""

import datetime
import logging
import os

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

CONFIG_NAME = '.idxtests.yaml'
ENV_PREFIX = 'IDXTESTS_'
DEFAULT_ES_URLS = ['http://localhost:9200']
DEFAULT_TIMEOUT = 10.0
DEFAULT_BATCH_SIZE = 1

# config file key -> Config attribute
FILE_KEYS = {
    'index': 'index',
    'esUrls': 'es_urls',
    'username': 'username',
    'password': 'password',
    'timeout': 'timeout',
    'batchSize': 'batch_size',
}


def default_index_name(today=None):
    today = today or datetime.date.today()
    return 'test-results-%s' % today.strftime('%Y-%m-%d')


class Config:
    # pylint: disable=too-few-public-methods

    def __init__(self, **kwargs):
        self.index = default_index_name()
        self.es_urls = list(DEFAULT_ES_URLS)
        self.username = None
        self.password = None
        self.timeout = DEFAULT_TIMEOUT
        self.batch_size = DEFAULT_BATCH_SIZE
        self.path = None
        self.update(kwargs)

    def update(self, values):
        for key, value in values.items():
            if value is None:
                continue
            if not hasattr(self, key):
                raise ValueError('unknown setting %r' % key)
            setattr(self, key, value)
        self.validate()

    def validate(self):
        if isinstance(self.es_urls, str):
            self.es_urls = [self.es_urls]
        if not isinstance(self.es_urls, list) or not all(
                isinstance(u, str) for u in self.es_urls):
            raise ValueError('esUrls must be a list of addresses, got %r' % (self.es_urls,))
        if not self.es_urls:
            raise ValueError('esUrls must list at least one address')
        try:
            self.timeout = float(self.timeout)
            self.batch_size = int(self.batch_size)
        except (TypeError, ValueError) as err:
            raise ValueError('invalid timeout or batchSize: %s' % err) from err
        if self.batch_size < 1:
            raise ValueError('batchSize must be positive, got %d' % self.batch_size)


def find_config_file(path=None, home=None):
    """Return the config file to use, or None if there is none.

    An explicit path must exist; the default under home is optional.
    """
    if path:
        if not os.path.isfile(path):
            raise ValueError('config file %s does not exist' % path)
        return path
    default = os.path.join(home or os.path.expanduser('~'), CONFIG_NAME)
    if os.path.isfile(default):
        return default
    return None


def load_file(path):
    """Load settings from a YAML config file, rejecting unknown keys."""
    with open(path) as fp:
        try:
            data = YAML(typ='safe').load(fp)
        except YAMLError as err:
            raise ValueError('cannot parse config %s: %s' % (path, err)) from err
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError('config file %s must hold a mapping' % path)
    unknown_keys = set(data) - set(FILE_KEYS)
    if unknown_keys:
        raise ValueError('Unknown keys in config %s: %s' % (path, ', '.join(sorted(unknown_keys))))
    return {FILE_KEYS[k]: v for k, v in data.items()}


def from_env(environ):
    values = {}
    for attr in ('index', 'username', 'password', 'timeout', 'batch_size'):
        value = environ.get(ENV_PREFIX + attr.upper())
        if value:
            values[attr] = value
    urls = environ.get(ENV_PREFIX + 'ES_URLS')
    if urls:
        values['es_urls'] = [u.strip() for u in urls.split(',') if u.strip()]
    return values


def load(opts, environ=None, home=None):
    """Build the Config for parsed command line options.

    Precedence, lowest first: defaults, config file, environment, flags.
    """
    if environ is None:
        environ = os.environ
    config = Config()
    path = find_config_file(getattr(opts, 'config', None), home)
    if path:
        logging.info('Using config file: %s', path)
        config.update(load_file(path))
        config.path = path
    config.update(from_env(environ))
    config.update({
        'index': getattr(opts, 'index', None),
        'es_urls': getattr(opts, 'es_urls', None),
        'timeout': getattr(opts, 'timeout', None),
        'batch_size': getattr(opts, 'batch_size', None),
    })
    return config
