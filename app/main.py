import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.router import api_router
from app.core.config import get_settings, validate_runtime_config
from app.services.auth_service import AuthService
from app.services.error_messages import ERROR_MESSAGE_TRANSLATIONS
from app.services.localization import (
    LocalizationConfig,
    get_localized_field,
    is_supported_language,
    normalize_language,
    parse_accept_language,
    pick_supported_language,
)


logger = logging.getLogger(__name__)


def _configure_logging() -> None:
    root_logger = logging.getLogger()
    if root_logger.handlers:
        return
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asynccontextmanager
async def _lifespan(_: FastAPI) -> AsyncIterator[None]:
    logger.info("Initializing auth defaults")
    AuthService().ensure_default_admin_user()
    yield


def create_application() -> FastAPI:
    _configure_logging()
    settings = get_settings()
    validate_runtime_config(settings)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        openapi_url=f"{settings.api_prefix}/openapi.json",
        docs_url=f"{settings.api_prefix}/docs",
        redoc_url=f"{settings.api_prefix}/redoc",
        lifespan=_lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(_negotiate_language)
    app.add_exception_handler(StarletteHTTPException, _localized_http_exception_handler)

    app.include_router(api_router, prefix=settings.api_prefix)

    return app


async def _negotiate_language(request: Request, call_next):
    config = LocalizationConfig.from_settings(get_settings())
    candidates: list[str] = []
    query_language = normalize_language(request.query_params.get("lang"))
    if query_language and is_supported_language(query_language, config):
        candidates.append(query_language)
    candidates.extend(parse_accept_language(request.headers.get("accept-language")))

    language = pick_supported_language(candidates, config)
    request.state.language = language

    response = await call_next(request)
    response.headers["Content-Language"] = language
    response.headers.add_vary_header("Accept-Language")
    return response


async def _localized_http_exception_handler(request: Request, exc: StarletteHTTPException):
    if isinstance(exc.detail, str):
        detail = get_localized_field(
            exc.detail,
            ERROR_MESSAGE_TRANSLATIONS.get(exc.detail),
            getattr(request.state, "language", None),
            LocalizationConfig.from_settings(get_settings()),
        )
        if detail != exc.detail:
            exc = HTTPException(status_code=exc.status_code, detail=detail, headers=exc.headers)
    return await http_exception_handler(request, exc)


app = create_application()
