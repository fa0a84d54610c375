import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from pharmstock.app.api.v1.router import router as v1_router
from pharmstock.app.core import config
from pharmstock.app.core.logging import setup_logging

setup_logging(config.LOG_LEVEL)
logger = logging.getLogger("pharmstock")

app = FastAPI(title="PHARMSTOCK", version="0.1.0")
app.include_router(v1_router, prefix="/v1")


@app.exception_handler(Exception)
async def _unhandled_exc(_req: Request, exc: Exception):
    logger.exception("UNHANDLED_EXC: %s", exc)
    return JSONResponse(status_code=500, content={"detail": "INTERNAL_ERROR"})
