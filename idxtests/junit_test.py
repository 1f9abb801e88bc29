#!/usr/bin/env python3

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

"""Tests for junit."""

# pylint: disable=missing-docstring

import os
import shutil
import tempfile
import unittest

from parameterized import parameterized

from idxtests import junit

SUITE_XML = '''
<testsuite name="k8s.io/kubernetes/pkg/api" tests="4" time="7">
    <properties>
        <property name="go.version" value="go1.15"/>
    </properties>
    <testcase name="TestFoo" classname="api" time="3" file="api_test.go"/>
    <testcase name="TestBad" classname="api" time="1,234.5">
        <failure message="boom" type="AssertionError">stacktrace</failure>
        <system-out>some output</system-out>
        <system-err>some errors</system-err>
    </testcase>
    <testcase name="TestLazy" classname="api" time="">
        <skipped message="not today"/>
    </testcase>
    <testcase name="TestBroken" classname="api">
        <error type="panic">nil pointer</error>
    </testcase>
    <system-out>suite output</system-out>
</testsuite>
'''


class ParseDurationTest(unittest.TestCase):
    @parameterized.expand([
        ("Seconds", "3", 3.0),
        ("Fraction", "0.25", 0.25),
        ("Thousands", "1,234.5", 1234.5),
        ("Empty", "", 0.0),
        ("Missing", None, 0.0),
        ("Garbage", "fast", 0.0),
    ])
    def test_parse_duration(self, _, value, expected):
        self.assertEqual(junit.parse_duration(value), expected)


class IngestXmlTest(unittest.TestCase):
    def test_suite(self):
        suites = junit.ingest_xml(SUITE_XML)
        self.assertEqual(len(suites), 1)
        suite = suites[0]
        self.assertEqual(suite.name, 'k8s.io/kubernetes/pkg/api')
        self.assertEqual(suite.properties, {'go.version': 'go1.15'})
        self.assertEqual(suite.system_out, 'suite output')
        self.assertEqual([t.name for t in suite.tests],
                         ['TestFoo', 'TestBad', 'TestLazy', 'TestBroken'])
        self.assertEqual([t.status for t in suite.tests],
                         [junit.PASSED, junit.FAILED, junit.SKIPPED, junit.ERROR])

    def test_passed(self):
        test = junit.ingest_xml(SUITE_XML)[0].tests[0]
        self.assertEqual(test.classname, 'api')
        self.assertEqual(test.duration, 3.0)
        self.assertIsNone(test.error)
        self.assertEqual(test.properties, {
            'name': 'TestFoo', 'classname': 'api', 'time': '3', 'file': 'api_test.go'})

    def test_failed(self):
        test = junit.ingest_xml(SUITE_XML)[0].tests[1]
        self.assertEqual(test.duration, 1234.5)
        self.assertEqual(test.message, 'boom')
        self.assertEqual(test.error, junit.TestError('boom', 'AssertionError', 'stacktrace'))
        self.assertEqual(str(test.error), 'stacktrace')
        self.assertEqual(test.system_out, 'some output')
        self.assertEqual(test.system_err, 'some errors')

    def test_skipped(self):
        test = junit.ingest_xml(SUITE_XML)[0].tests[2]
        self.assertEqual(test.duration, 0.0)
        self.assertEqual(test.message, 'not today')
        self.assertIsNone(test.error)

    def test_error(self):
        test = junit.ingest_xml(SUITE_XML)[0].tests[3]
        self.assertEqual(test.error.as_dict(), {'type': 'panic', 'body': 'nil pointer'})

    def test_testsuites(self):
        suites = junit.ingest_xml('''
            <testsuites>
                <testsuite name="a"><testcase name="one"/></testsuite>
                <testsuite name="b">
                    <testcase name="two"/>
                    <testsuite name="b/nested">
                        <testcase name="three"><failure/></testcase>
                    </testsuite>
                </testsuite>
            </testsuites>''')
        self.assertEqual([s.name for s in suites], ['a', 'b'])
        self.assertEqual([s.name for s in suites[1].walk()], ['b', 'b/nested'])
        totals = suites[1].totals()
        self.assertEqual(totals['tests'], 2)
        self.assertEqual(totals[junit.PASSED], 1)
        self.assertEqual(totals[junit.FAILED], 1)

    def test_bare_testcase(self):
        suites = junit.ingest_xml(b'<testcase name="lonely" time="2"/>')
        self.assertEqual(len(suites), 1)
        self.assertEqual(suites[0].name, '')
        self.assertEqual(suites[0].tests[0].name, 'lonely')

    def test_unexpected_root(self):
        self.assertEqual(junit.ingest_xml('<coverage/>'), [])

    def test_malformed(self):
        with self.assertRaises(junit.ParseError) as ctx:
            junit.ingest_xml('<testsuite><testcase', 'junit_01.xml')
        self.assertEqual(ctx.exception.path, 'junit_01.xml')
        self.assertIn('junit_01.xml', str(ctx.exception))

    def test_entities_forbidden(self):
        data = '<!DOCTYPE x [<!ENTITY a "b">]><testsuite name="&a;"/>'
        with self.assertRaises(junit.ParseError) as ctx:
            junit.ingest_xml(data, 'junit_02.xml')
        self.assertEqual(ctx.exception.path, 'junit_02.xml')


class IngestPathTest(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.tmpdir)

    def write(self, name, data):
        path = os.path.join(self.tmpdir, name)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, 'w') as fp:
            fp.write(data)
        return path

    def test_ingest_file(self):
        path = self.write('junit_01.xml', SUITE_XML)
        suites = junit.ingest(path)
        self.assertEqual(len(suites[0].tests), 4)

    def test_ingest_dir(self):
        self.write('b/junit_02.xml', '<testsuite name="second"><testcase name="x"/></testsuite>')
        self.write('a/junit_01.xml', '<testsuite name="first"><testcase name="y"/></testsuite>')
        self.write('notes.txt', 'not xml at all')
        suites = junit.ingest(self.tmpdir)
        self.assertEqual([s.name for s in suites], ['first', 'second'])

    def test_ingest_empty_dir(self):
        self.assertEqual(junit.ingest_dir(self.tmpdir), [])

    def test_ingest_dir_malformed(self):
        self.write('junit_01.xml', SUITE_XML)
        bad = self.write('junit_02.xml', '<testsuite>')
        with self.assertRaises(junit.ParseError) as ctx:
            junit.ingest_dir(self.tmpdir)
        self.assertEqual(ctx.exception.path, bad)


if __name__ == '__main__':
    unittest.main()
