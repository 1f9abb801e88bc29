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

"""idxtests allows you to index test results into Elasticsearch."""

import argparse
import logging
import os
import shutil
import sys

from idxtests import config
from idxtests import junit
from idxtests import processor
from idxtests import results

STATUS_LABELS = {
    junit.PASSED: 'PASS',
    junit.SKIPPED: 'SKIP',
    junit.FAILED: 'FAIL',
    junit.ERROR: 'ERR ',
}


def setup_logging(verbose=False):
    """Initialize logging to screen"""
    # [IWEF]mmdd HH:MM:SS.mmm] msg
    fmt = '%(levelname).1s%(asctime)s.%(msecs)03d] %(message)s'
    datefmt = '%m%d %H:%M:%S'
    debug = verbose or os.getenv('LOG_LEVEL') == 'DEBUG'
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format=fmt,
        datefmt=datefmt,
    )


def add_global_flags(parser, urls_dest):
    """Add the flags accepted on either side of the subcommand.

    Nothing is set unless given, so a subcommand never clobbers a value
    given before it. -e collects into urls_dest, merged by parse_args.
    """
    parser.add_argument('--config', default=argparse.SUPPRESS,
                        help='config file (default is $HOME/%s)' % config.CONFIG_NAME)
    parser.add_argument('-i', '--index', default=argparse.SUPPRESS,
                        help='elasticsearch index name (default is test-results-YYYY-MM-DD)')
    parser.add_argument('-e', '--esUrls', dest=urls_dest, action='append',
                        default=argparse.SUPPRESS,
                        help='elasticsearch cluster endpoint, may be repeated '
                        '(default is %s)' % config.DEFAULT_ES_URLS[0])
    parser.add_argument('--timeout', type=float, default=argparse.SUPPRESS,
                        help='seconds to wait for each elasticsearch request')
    parser.add_argument('-v', '--verbose', action='store_true', default=argparse.SUPPRESS,
                        help='log debug messages')


def parse_args(args):
    parser = argparse.ArgumentParser(
        prog='idxtests', description='idxtests allows you to index Test Results')
    add_global_flags(parser, 'es_urls')
    subparsers = parser.add_subparsers(dest='command', metavar='COMMAND')

    index_parser = subparsers.add_parser(
        'index', help='index test results file into Elasticsearch')
    add_global_flags(index_parser, 'sub_es_urls')
    index_parser.add_argument('path', help='JUnit XML file or directory to index')
    index_parser.add_argument('--setup', action='store_true', default=False,
                              help='Create Elasticsearch index')
    index_parser.add_argument('--batch-size', type=int, default=argparse.SUPPRESS,
                              help='index documents through the bulk API, N at a time')

    show_parser = subparsers.add_parser('show', help='print test results to the console')
    add_global_flags(show_parser, 'sub_es_urls')
    show_parser.add_argument('path', help='JUnit XML file or directory to show')

    opts = parser.parse_args(args)
    urls = getattr(opts, 'es_urls', []) + getattr(opts, 'sub_es_urls', [])
    if hasattr(opts, 'sub_es_urls'):
        del opts.sub_es_urls
    if urls:
        opts.es_urls = urls
    if not opts.command:
        parser.print_help(sys.stderr)
        parser.exit(2)
    if not os.path.exists(opts.path):
        parser.error('this path is not valid: %s' % opts.path)
    return opts


def fit(text, width):
    if len(text) <= width:
        return text
    if width <= 3:
        return text[:width]
    return text[:width - 3] + '...'


def render_suites(suites, width):
    """Render suites and their tests as lines no wider than width."""
    lines = []
    for top in suites:
        for suite in top.walk():
            totals = suite.totals()
            header = '== %s: %d tests, %d failed, %d errors, %d skipped in %.3fs ==' % (
                suite.name or '<unnamed>', totals['tests'], totals[junit.FAILED],
                totals[junit.ERROR], totals[junit.SKIPPED], totals['duration'])
            lines.append(fit(header, width))
            for test in suite.tests:
                name = '.'.join(p for p in (test.classname, test.name) if p)
                line = '  %s %8.3fs  %s' % (STATUS_LABELS[test.status], test.duration, name)
                lines.append(fit(line, width))
                if test.message:
                    lines.append(fit('        %s' % test.message.splitlines()[0], width))
    return lines


def show(opts, outfile):
    suites = junit.ingest(opts.path)
    width = shutil.get_terminal_size().columns
    for line in render_suites(suites, width):
        print(line, file=outfile)
    return 0


def index(opts, cfg):
    client = results.Results.from_config(cfg)
    worker = processor.TestResultProcessor(client, batch_size=cfg.batch_size)
    if opts.setup:
        worker.setup_index()
    logging.info('Starting the processing for <%s>', opts.path)
    worker.run(opts.path)
    return 0


def main(args, outfile=None):
    opts = parse_args(args)
    setup_logging(getattr(opts, 'verbose', False))
    try:
        if opts.command == 'show':
            return show(opts, outfile or sys.stdout)
        cfg = config.load(opts)
        return index(opts, cfg)
    except junit.ParseError as err:
        logging.error('Cannot read files. Invalid format: %s', err)
    except results.Error as err:
        logging.error('Cannot index test results into Elasticsearch: %s', err)
    except (ValueError, OSError) as err:
        logging.error('%s', err)
    return 1


def entrypoint():
    sys.exit(main(sys.argv[1:]))


if __name__ == '__main__':
    entrypoint()
