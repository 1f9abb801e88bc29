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

"""Elasticsearch client that indexes test result documents."""

import json
import logging
import time
import urllib.parse

import requests
import requests.adapters

DEFAULT_INDEX = 'test-suites'
MAX_IDLE_CONNS_PER_HOST = 10
RETRY_STATUSES = (502, 503, 504)
BULK_CHUNK_SIZE = 100


class Error(Exception):
    pass


def describe_error(resp):
    """Format an Elasticsearch error response as '[status] type: reason'."""
    status = '%d %s' % (resp.status_code, resp.reason or '')
    try:
        body = resp.json()
    except ValueError:
        return '[%s] %s' % (status.strip(), resp.text)
    err = body.get('error') if isinstance(body, dict) else None
    if isinstance(err, dict):
        return '[%s] %s: %s' % (status.strip(), err.get('type'), err.get('reason'))
    return '[%s] %s' % (status.strip(), err or resp.text)


class Results:
    """Index test results into an Elasticsearch index.

    Requests go round-robin over the cluster addresses and are retried on
    connection errors, timeouts and gateway statuses, backing off
    exponentially.
    """

    # pylint: disable=too-many-arguments

    def __init__(self, addresses, index_name=None, username=None, password=None,
                 timeout=10.0, retries=3, backoff=1.0, session=None):
        if not addresses:
            raise ValueError('at least one Elasticsearch address is required')
        if retries < 0:
            raise ValueError('retries must not be negative, got %d' % retries)
        self.addresses = [a.rstrip('/') for a in addresses]
        self.index_name = index_name or DEFAULT_INDEX
        self.timeout = timeout
        self.retries = retries
        self.backoff = backoff
        self._next = 0
        if session is None:
            session = requests.Session()
            adapter = requests.adapters.HTTPAdapter(pool_maxsize=MAX_IDLE_CONNS_PER_HOST)
            session.mount('http://', adapter)
            session.mount('https://', adapter)
        if username:
            session.auth = (username, password or '')
        self.session = session

    @staticmethod
    def from_config(config):
        return Results(
            config.es_urls,
            config.index,
            username=config.username,
            password=config.password,
            timeout=config.timeout,
        )

    def _address(self):
        address = self.addresses[self._next % len(self.addresses)]
        self._next += 1
        return address

    def _request(self, method, path, body=None, content_type='application/json'):
        """Send a request to the cluster, retrying on transient failures.

        Returns (response, retried). The response may be an error response;
        retried is True when an earlier attempt of the same request was sent.
        """
        headers = {'Content-Type': content_type} if body is not None else {}
        attempt = 0
        while True:
            url = self._address() + path
            try:
                resp = self.session.request(
                    method, url, data=body, headers=headers, timeout=self.timeout)
            except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as err:
                if attempt >= self.retries:
                    raise Error('%s %s failed after %d attempts: %s'
                                % (method, path, attempt + 1, err)) from err
                logging.warning('%s %s failed (attempt #%d): %s', method, url, attempt, err)
            else:
                if resp.status_code not in RETRY_STATUSES or attempt >= self.retries:
                    return resp, attempt > 0
                logging.warning('%s %s returned %d (attempt #%d), retrying',
                                method, url, resp.status_code, attempt)
            attempt += 1
            time.sleep(self.backoff * 2 ** (attempt - 1))

    def _index_path(self, *parts):
        return '/' + '/'.join(urllib.parse.quote(p, safe='') for p in (self.index_name,) + parts)

    def create_index(self, mapping):
        """Create the index with the given mapping (a dict or a JSON string)."""
        if not isinstance(mapping, str):
            mapping = json.dumps(mapping)
        resp, _ = self._request('PUT', self._index_path(), mapping.encode('utf-8'))
        if resp.status_code >= 400:
            raise Error(describe_error(resp))
        logging.info('Created index %s', self.index_name)

    def create(self, doc):
        """Index a single TestDocument, failing if its id already exists.

        A conflict on a retried request means an earlier attempt was stored
        after its response was lost, so it counts as created.
        """
        resp, retried = self._request('PUT', self._index_path('_create', doc.doc_id),
                                      doc.to_json().encode('utf-8'))
        if resp.status_code == 409 and retried:
            logging.info('document %s already stored by an earlier attempt', doc.doc_id)
            return
        if resp.status_code >= 400:
            raise Error(describe_error(resp))

    def bulk_create(self, docs, chunk_size=BULK_CHUNK_SIZE):
        """Index TestDocuments through the _bulk API, chunk_size at a time.

        Returns the number of documents created. Raises Error listing the
        failed items if any document was rejected. Conflicts on a retried
        chunk count as created, like in create.
        """
        docs = list(docs)
        created = 0
        failures = []
        while docs:
            chunk, docs = docs[:chunk_size], docs[chunk_size:]
            lines = []
            for doc in chunk:
                lines.append(json.dumps({'create': {'_index': self.index_name, '_id': doc.doc_id}}))
                lines.append(doc.to_json())
            body = ('\n'.join(lines) + '\n').encode('utf-8')
            resp, retried = self._request(
                'POST', '/_bulk', body, content_type='application/x-ndjson')
            if resp.status_code >= 400:
                raise Error(describe_error(resp))
            for item in resp.json().get('items', []):
                result = item.get('create', {})
                status = result.get('status', 500)
                if status < 300 or (status == 409 and retried):
                    created += 1
                    continue
                err = result.get('error') or {}
                failures.append('%s: [%s] %s: %s' % (
                    result.get('_id'), status, err.get('type'), err.get('reason')))
            logging.debug('bulk indexed %d documents into %s', len(chunk), self.index_name)
        if failures:
            raise Error('%d documents failed to index:\n%s' % (
                len(failures), '\n'.join(failures[:10])))
        return created
