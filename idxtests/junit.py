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

"""Ingest JUnit XML test results into suites and tests."""

import logging
import os

import defusedxml
import defusedxml.ElementTree as ET

PASSED = 'passed'
SKIPPED = 'skipped'
FAILED = 'failed'
ERROR = 'error'

STATUSES = (PASSED, SKIPPED, FAILED, ERROR)


class ParseError(Exception):
    def __init__(self, path, err):
        super().__init__('cannot parse %s: %s' % (path or '<data>', err))
        self.path = path
        self.err = err


class TestError:
    """Record of the failure or error of a test."""
    __test__ = False  # not a pytest class

    def __init__(self, message='', type_='', body=''):
        self.message = message
        self.type = type_
        self.body = body

    def __str__(self):
        return self.body

    def __eq__(self, other):
        return isinstance(other, TestError) and self.as_dict() == other.as_dict()

    def as_dict(self):
        return {k: v for k, v in
                (('message', self.message), ('type', self.type), ('body', self.body)) if v}


class Test:
    """
    Represent the result of a single test case.

    The error is set if and only if the status is failed or error.
    Properties holds every attribute of the <testcase> node; some tools
    use them to store the location of the test.
    """
    __test__ = False  # not a pytest class

    # pylint: disable=too-many-instance-attributes

    def __init__(self, name, classname='', duration=0.0, status=PASSED):
        self.name = name
        self.classname = classname
        self.duration = duration
        self.status = status
        self.message = ''
        self.error = None
        self.properties = {}
        self.system_out = ''
        self.system_err = ''


class Suite:
    """A <testsuite>, its tests and the suites nested under it."""

    def __init__(self, name='', package=''):
        self.name = name
        self.package = package
        self.properties = {}
        self.tests = []
        self.suites = []
        self.system_out = ''
        self.system_err = ''

    def walk(self):
        yield self
        for suite in self.suites:
            yield from suite.walk()

    def totals(self):
        """Count tests per status and sum durations, nested suites included."""
        totals = dict.fromkeys(STATUSES, 0)
        totals['tests'] = 0
        totals['duration'] = 0.0
        for suite in self.walk():
            for test in suite.tests:
                totals[test.status] += 1
                totals['tests'] += 1
                totals['duration'] += test.duration
        return totals


def parse_duration(value):
    """Seconds from a time attribute; '' or garbage count as zero."""
    try:
        return float((value or '0').replace(',', ''))
    except ValueError:
        return 0.0


def _text(node):
    return (node.text or '').strip() if node is not None else ''


def _make_error(node):
    return TestError(node.attrib.get('message', ''), node.attrib.get('type', ''), _text(node))


def _parse_test(node):
    test = Test(
        node.attrib.get('name', ''),
        node.attrib.get('classname', ''),
        parse_duration(node.attrib.get('time')),
    )
    test.properties = dict(node.attrib)
    for child in node:
        if child.tag == 'skipped':
            test.status = SKIPPED
            test.message = child.attrib.get('message', '')
        elif child.tag == 'failure':
            test.status = FAILED
            test.error = _make_error(child)
            test.message = test.error.message
        elif child.tag == 'error':
            test.status = ERROR
            test.error = _make_error(child)
            test.message = test.error.message
        elif child.tag == 'system-out':
            test.system_out = _text(child)
        elif child.tag == 'system-err':
            test.system_err = _text(child)
    return test


def _parse_suite(node):
    suite = Suite(node.attrib.get('name', ''), node.attrib.get('package', ''))
    for child in node:
        if child.tag == 'testcase':
            suite.tests.append(_parse_test(child))
        elif child.tag == 'testsuite':
            suite.suites.append(_parse_suite(child))
        elif child.tag == 'properties':
            for prop in child.findall('property'):
                suite.properties[prop.attrib.get('name', '')] = prop.attrib.get('value', '')
        elif child.tag == 'system-out':
            suite.system_out = _text(child)
        elif child.tag == 'system-err':
            suite.system_err = _text(child)
    return suite


def _find_suites(node):
    if node.tag == 'testsuite':
        return [_parse_suite(node)]
    suites = []
    for child in node:
        suites.extend(_find_suites(child))
    return suites


def ingest_xml(data, path=None):
    """Parse a JUnit XML payload (str or bytes) into a list of Suites."""
    try:
        tree = ET.fromstring(data)
    except (ET.ParseError, defusedxml.DefusedXmlException) as err:
        raise ParseError(path, err) from err
    if tree.tag == 'testcase':
        suite = Suite()
        suite.tests.append(_parse_test(tree))
        return [suite]
    suites = _find_suites(tree)
    if not suites:
        logging.warning('no test suites found in %s, root tag is %s', path or '<data>', tree.tag)
    return suites


def ingest_file(path):
    with open(path, 'rb') as fp:
        return ingest_xml(fp.read(), path)


def ingest_files(paths):
    suites = []
    for path in paths:
        suites.extend(ingest_file(path))
    return suites


def ingest_dir(directory):
    """Ingest every *.xml file below directory, in sorted order."""
    paths = []
    for root, _dirs, files in os.walk(directory):
        for fname in files:
            if fname.endswith('.xml'):
                paths.append(os.path.join(root, fname))
    logging.debug('found %d xml files under %s', len(paths), directory)
    return ingest_files(sorted(paths))


def ingest(path):
    if os.path.isdir(path):
        return ingest_dir(path)
    return ingest_file(path)
