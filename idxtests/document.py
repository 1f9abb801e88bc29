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

"""Map parsed test cases to the documents stored in Elasticsearch."""

import datetime
import json
import uuid

# Should match the fields emitted by TestDocument.as_dict.
INDEX_MAPPING = {
    'mappings': {
        'properties': {
            'suitename': {'type': 'keyword'},
            'name': {'type': 'keyword'},
            'classname': {'type': 'keyword'},
            'published': {'type': 'date'},
            'duration': {'type': 'double'},
            'status': {'type': 'keyword'},
            'error': {
                'properties': {
                    'message': {'type': 'text'},
                    'type': {'type': 'keyword'},
                    'body': {'type': 'text'},
                },
            },
            'properties': {'type': 'object'},
            'stdout': {'type': 'text'},
            'stderr': {'type': 'text'},
        },
    },
}


class TestDocument:
    """
    Represent the result of a single test run, as indexed.

    Attributes:
        suitename: name of the suite the test belongs to
        published: when the document was built, timezone aware
        duration: seconds taken by the test
        status: one of passed, skipped, failed, error
        error: dict with message/type/body, or None
        doc_id: Elasticsearch _id, random unless given
    """
    __test__ = False  # not a pytest class

    # pylint: disable=too-many-instance-attributes,too-many-arguments

    def __init__(self, suitename, name, classname='', duration=0.0, status='passed',
                 error=None, properties=None, stdout='', stderr='',
                 published=None, doc_id=None):
        self.suitename = suitename
        self.name = name
        self.classname = classname
        self.duration = duration
        self.status = status
        self.error = error
        self.properties = properties or {}
        self.stdout = stdout
        self.stderr = stderr
        self.published = published or datetime.datetime.now(datetime.timezone.utc)
        self.doc_id = doc_id or uuid.uuid4().hex

    @classmethod
    def from_test(cls, suitename, test, published=None):
        return cls(
            suitename,
            test.name,
            classname=test.classname,
            duration=test.duration,
            status=test.status,
            error=test.error.as_dict() if test.error is not None else None,
            properties=dict(test.properties),
            stdout=test.system_out,
            stderr=test.system_err,
            published=published,
        )

    def as_dict(self):
        doc = {
            'suitename': self.suitename,
            'name': self.name,
            'classname': self.classname,
            'published': self.published.isoformat(),
            'duration': self.duration,
            'status': self.status,
            'error': self.error,
            'properties': self.properties,
        }
        if self.stdout:
            doc['stdout'] = self.stdout
        if self.stderr:
            doc['stderr'] = self.stderr
        return doc

    def to_json(self):
        return json.dumps(self.as_dict(), sort_keys=True)
