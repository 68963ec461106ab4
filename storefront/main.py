# storefront/main.py
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError
import uvicorn

from storefront.api.routers import carts, health, orders
from storefront.data.database import Base, engine
from storefront.domain.errors import ServerError
from storefront.utils.logging import configure_logging, get_logger

# IMPORT WSZYSTKICH MODELI (PRZED CREATE_ALL)
import storefront.data.models  # noqa: F401

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    logger.info("Models registered in Base.metadata", tables=list(Base.metadata.tables.keys()))
    try:
        Base.metadata.create_all(bind=engine)
    except SQLAlchemyError as e:
        logger.error("FAILED TO CREATE TABLES", error=repr(e))
        raise
    logger.info("Database tables ready")
    yield


async def server_error_handler(request: Request, exc: Exception) -> JSONResponse:
    # awaria bazy / redisa - klient dostaje nieprzezroczysty blad, szczegoly tylko w logach
    logger.error("Request failed", method=request.method, path=request.url.path, error=repr(exc))
    return JSONResponse(status_code=500, content={"detail": ServerError().to_dict()})


def create_app() -> FastAPI:
    app = FastAPI(
        title="Storefront Checkout Service",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_exception_handler(SQLAlchemyError, server_error_handler)
    app.add_exception_handler(RedisError, server_error_handler)

    # Include routers
    app.include_router(health.router)
    app.include_router(carts.router)
    app.include_router(orders.router)

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
