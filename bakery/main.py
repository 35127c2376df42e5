# bakery/main.py
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from bakery.api import include_routers
from bakery.api.errors import register_exception_handlers
from bakery.data import models  # noqa: F401  registers every table on Base.metadata
from bakery.data.database import Base, engine
from bakery.utils.logging import get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Initializing database, tables: {list(Base.metadata.tables.keys())}")
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ready")
    yield


def create_app() -> FastAPI:
    app = FastAPI(
        title="Bakery Storefront",
        version="1.0.0",
        lifespan=lifespan,
    )

    register_exception_handlers(app)
    include_routers(app)

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
