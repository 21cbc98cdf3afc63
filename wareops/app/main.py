from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from wareops.app.api.v1.router import router as v1_router
from wareops.app.core.logging_config import configure_logging

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    logger.info("wareops.startup", version=app.version)
    yield
    logger.info("wareops.shutdown")


app = FastAPI(title="WAREOPS Fulfillment", version="0.1.0", lifespan=lifespan)
app.include_router(v1_router, prefix="/v1")
