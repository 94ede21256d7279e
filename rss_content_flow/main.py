##########################################################################################
#
# Script name: main.py
#
# Description: CLI entrypoint for serving the HTTP trigger or running the flow once.
#
##########################################################################################

import argparse
import json
import logging
import os
import sys
from datetime import date

import requests
import uvicorn
from openai import OpenAI

from .config import VARIANTS, load_settings
from .credentials import build_secret_store
from .flow import build_flow
from .generator import OpenAITextGenerator
from .server import create_app


# ****************************************************************************************
# Global data and configuration
# ****************************************************************************************

log = logging.getLogger(os.path.basename(sys.argv[0]))
log.setLevel(logging.DEBUG)
log.propagate = False
formatter = logging.Formatter(
    '%(asctime)-15s [%(funcName)25s:%(lineno)-5s] %(levelname)-8s %(message)s'
)

# File handler for logging
fh = logging.FileHandler('rss_content_flow.log', mode='w')
fh.setLevel(logging.DEBUG)
fh.setFormatter(formatter)
if not any(isinstance(handler, logging.FileHandler) for handler in log.handlers):
    log.addHandler(fh)

root_log = logging.getLogger()
root_log.setLevel(logging.DEBUG)
if not any(isinstance(handler, logging.FileHandler) for handler in root_log.handlers):
    root_log.addHandler(fh)


# ****************************************************************************************
# Functions
# ****************************************************************************************


def build_runner(settings):
    '''
    Create the process-wide collaborators once and return a callable that
    performs one run per invocation.
    '''
    text_generator = OpenAITextGenerator(
        client=OpenAI(timeout=settings.request_timeout),
        model=settings.model,
        timeout=settings.request_timeout,
    )
    secret_store = build_secret_store(settings)
    session = requests.Session()

    def run_flow():
        return build_flow(settings, text_generator, secret_store, session=session).run()

    return run_flow


def serve(settings) -> None:
    app = create_app(build_runner(settings))
    log.info('Listening on port %s', settings.port)
    uvicorn.run(app, host='0.0.0.0', port=settings.port, log_config=None)


def run_once(settings) -> int:
    result = build_runner(settings)()
    print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
    return 0 if result.success else 1


# ****************************************************************************************
# Handle the arguments
# ****************************************************************************************


def handle_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description='Turn RSS news into generated articles and publish them.')
    parser.add_argument('command', choices=['serve', 'run'], help='Serve the HTTP trigger or run the flow once.')
    parser.add_argument('--config', default=None, help='Path to flow config YAML.')
    parser.add_argument('--variant', choices=sorted(VARIANTS), default=None, help='Override FLOW_VARIANT.')
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose output to stdout.')
    parser.add_argument('-q', '--quiet', action='store_true', help='Minimal stdout.')
    args = parser.parse_args(argv)

    # Configure stdout logging based on arguments
    ch = logging.StreamHandler(sys.stdout)
    if args.verbose:
        ch.setLevel(logging.DEBUG)
    elif args.quiet:
        ch.setLevel(logging.ERROR)
    else:
        ch.setLevel(logging.INFO)
    ch.setFormatter(formatter)
    log.addHandler(ch)
    root_log.addHandler(ch)

    log.debug('Checking script requirements...')
    if not args.verbose and not args.quiet:
        log.debug('No output level specified. Defaulting to INFO.')

    log.info('++++++++++++++++++++++++++++++++++++++++++++++')
    log.info('+  %s %s', os.path.basename(sys.argv[0]), args.command)
    log.info('+  Python Version: %s', sys.version.split()[0])
    log.info('+  Today is: %s', date.today())
    log.info('++++++++++++++++++++++++++++++++++++++++++++++')
    return args


# ****************************************************************************************
# Main
# ****************************************************************************************


def main(argv=None) -> int:
    args = handle_args(argv)
    environ = dict(os.environ)
    if args.variant:
        environ['FLOW_VARIANT'] = args.variant
    settings = load_settings(args.config, environ=environ)
    log.info('Flow variant: %s (%d feed(s), %d item(s) per run)',
             settings.variant, len(settings.feeds), settings.max_items)
    if args.command == 'serve':
        serve(settings)
        return 0
    return run_once(settings)


if __name__ == '__main__':
    sys.exit(main())
