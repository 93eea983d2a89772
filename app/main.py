# app/main.py
from fastapi import FastAPI
from fastapi.responses import PlainTextResponse
import logging
import sys
from contextlib import asynccontextmanager

import uvicorn

from app.config import settings
from app.database import db
from app.api.routes import products as product_routes
from app.exceptions import register_exception_handlers
from app.middleware.request_logging import add_request_logging


logger = logging.getLogger("uvicorn.error")


def setup_logging() -> None:
    """Configure root logging once, at the level given by LOG_LEVEL."""
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context: connect the document store before the app starts serving.
    A store that can't be opened is fatal, so the error is allowed to propagate.
    """
    # --- startup logic ---
    setup_logging()
    try:
        db.connect()
    except Exception as e:
        logger.error("Could not open document store at %s: %s", db.data_dir, e)
        raise
    logger.info("Product API ready (env=%s)", settings.ENV)

    yield
    # --- shutdown logic ---
    logger.info("Shutting down Product API")


app = FastAPI(title="Product API", version="1.0.0", lifespan=lifespan)
add_request_logging(app)
register_exception_handlers(app)

app.include_router(product_routes.router)


@app.get("/", tags=["root"], response_class=PlainTextResponse)
async def root():
    return "Hello WORLD"


if __name__ == "__main__":
    uvicorn.run("app.main:app", host=settings.HOST, port=settings.PORT)
