##########################################################################################
#
# Script name: server.py
#
# Description: HTTP trigger exposing a single route that runs the content flow.
#
##########################################################################################

import logging

from fastapi import FastAPI
from fastapi.responses import JSONResponse, PlainTextResponse


# ****************************************************************************************
# Global data and configuration
# ****************************************************************************************

log = logging.getLogger(__name__)


# ****************************************************************************************
# Functions
# ****************************************************************************************


def create_app(run_flow) -> FastAPI:
    '''
    Build the trigger app around `run_flow`, a callable returning a RunResult.

    POST / runs the flow once per request. A successful run answers 200 with
    the result as JSON, an unsuccessful one 500 with the same JSON shape, and
    any exception escaping the flow 500 with a plain-text message.
    '''
    app = FastAPI(title='rss-content-flow')

    # Sync handlers run in FastAPI's threadpool, so the blocking run does not stall the loop.
    @app.post('/')
    def trigger():
        try:
            result = run_flow()
        except Exception as exc:  # noqa: BLE001
            log.exception('Fatal error while running the flow: %s', exc)
            return PlainTextResponse(f'Internal server error: {exc}', status_code=500)
        status_code = 200 if result.success else 500
        return JSONResponse(result.to_dict(), status_code=status_code)

    @app.get('/healthz')
    def healthz():
        return PlainTextResponse('ok')

    return app
