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

"""Turn JUnit result files into documents and index them."""

import datetime
import logging

from idxtests import document
from idxtests import junit


class TestResultProcessor:
    """Process a file or directory of JUnit XML results into Elasticsearch."""
    __test__ = False  # not a pytest class

    def __init__(self, results, batch_size=1, clock=None):
        self.results = results
        self.batch_size = batch_size
        self.clock = clock or (lambda: datetime.datetime.now(datetime.timezone.utc))

    def setup_index(self):
        logging.info('Creating index %s with mapping', self.results.index_name)
        self.results.create_index(document.INDEX_MAPPING)

    def documents(self, suites):
        """Generate a TestDocument per test case, nested suites included."""
        for top in suites:
            for suite in top.walk():
                logging.debug('== TestSuite == %s', suite.name)
                for test in suite.tests:
                    doc = document.TestDocument.from_test(suite.name, test, self.clock())
                    logging.debug('== TestName == %s %s: %s', suite.name, test.name, doc.to_json())
                    yield doc

    def index(self, docs):
        """Index docs one by one, or in bulk batches when batch_size > 1."""
        if self.batch_size <= 1:
            count = 0
            for doc in docs:
                self.results.create(doc)
                count += 1
            return count
        return self.results.bulk_create(docs, chunk_size=self.batch_size)

    def run(self, path):
        """Ingest path and index every test in it.

        Returns a dict counting suites, indexed documents and tests per status.
        """
        suites = junit.ingest(path)
        summary = dict.fromkeys(junit.STATUSES, 0)
        summary['suites'] = sum(1 for top in suites for _ in top.walk())

        def counted(docs):
            for doc in docs:
                summary[doc.status] += 1
                yield doc

        summary['indexed'] = self.index(counted(self.documents(suites)))
        logging.info('Indexed %d tests from %d suites of %s into %s',
                     summary['indexed'], summary['suites'], path, self.results.index_name)
        return summary
