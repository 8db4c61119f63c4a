from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from provisioner.config import LOG_LEVEL
from provisioner.errors import ProvisionError
from provisioner.routers import api, sse


def _ensure_logging() -> None:
    level = getattr(logging, LOG_LEVEL, logging.WARNING)
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, format="%(levelname)s: %(message)s")
    else:
        root.setLevel(level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    _ensure_logging()
    yield


app = FastAPI(title="Stack Provisioner", lifespan=lifespan)

app.include_router(api.router)
app.include_router(sse.router)


@app.exception_handler(ProvisionError)
async def provision_error_handler(request: Request, exc: ProvisionError) -> JSONResponse:
    return JSONResponse({"error": str(exc), "exit_code": exc.exit_code}, status_code=500)


@app.get("/health")
async def health():
    return {"status": "ok"}
