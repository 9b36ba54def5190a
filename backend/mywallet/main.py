import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse, Response

from mywallet.core.config import Settings, settings
from mywallet.core.errors import UnauthenticatedError, WalletError
from mywallet.db.store import DocumentStore
from mywallet.models.schemas import format_errors
from mywallet.routers.web import router as web_router

logger = logging.getLogger(__name__)


def build_store(cfg: Settings) -> DocumentStore:
    if cfg.store_backend == "memory":
        from mywallet.db.memory import MemoryDocumentStore

        return MemoryDocumentStore()
    from mywallet.db.documents import PostgresDocumentStore

    return PostgresDocumentStore.from_settings(cfg)


def wallet_error_handler(_: Request, exc: WalletError) -> Response:
    if isinstance(exc, UnauthenticatedError):
        return Response(status_code=exc.status_code)
    if exc.status_code >= 500:
        logger.error("request failed: %s", exc.detail)
    return PlainTextResponse(exc.detail, status_code=exc.status_code)


def request_validation_handler(_: Request, exc: RequestValidationError) -> Response:
    return PlainTextResponse(format_errors(exc), status_code=422)


def create_app(store: DocumentStore | None = None, cfg: Settings = settings) -> FastAPI:
    logging.basicConfig(level=cfg.log_level)
    store = store if store is not None else build_store(cfg)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        store.open()
        try:
            yield
        finally:
            store.close()

    app = FastAPI(title="MyWallet", lifespan=lifespan)
    app.state.store = store
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(cfg.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(web_router)
    app.add_exception_handler(WalletError, wallet_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    return app


app = create_app()


def run() -> None:
    import uvicorn

    uvicorn.run("mywallet.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
