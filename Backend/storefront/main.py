import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .catalog import CatalogFetchError, ValidationError, get_catalog_cache
from .catalog.mutations import ConflictError, NotFoundError
from .core.config import get_settings
from .core.db import AsyncSessionLocal, Base, engine
from .core.responses import ErrorCodes, error_response
from .routes_catalog import router as catalog_router
from .seed import seed_initial_data
from .tenancy import ShopNotFoundError


settings = get_settings()
app = FastAPI(title="Storefront Catalog Backend")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(catalog_router)


# ────────────────────────────────────────────────────────────────
# Error Mapping
# ────────────────────────────────────────────────────────────────

@app.exception_handler(ValidationError)
async def handle_validation_error(request: Request, exc: ValidationError):
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=error_response(ErrorCodes.VALIDATION_ERROR, exc.message, {"field": exc.field}),
    )


@app.exception_handler(CatalogFetchError)
async def handle_catalog_fetch_error(request: Request, exc: CatalogFetchError):
    logger.error(f"Catalog unavailable for {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=error_response(
            ErrorCodes.CATALOG_UNAVAILABLE,
            "The catalog could not be loaded. Please try again.",
            exc.context,
        ),
    )


@app.exception_handler(ShopNotFoundError)
async def handle_shop_not_found(request: Request, exc: ShopNotFoundError):
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content=error_response(ErrorCodes.SHOP_NOT_FOUND, exc.message, {"slug": exc.slug}),
    )


@app.exception_handler(NotFoundError)
async def handle_not_found(request: Request, exc: NotFoundError):
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content=error_response(ErrorCodes.NOT_FOUND, exc.message),
    )


@app.exception_handler(ConflictError)
async def handle_conflict(request: Request, exc: ConflictError):
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content=error_response(ErrorCodes.ALREADY_EXISTS, exc.message),
    )


# ────────────────────────────────────────────────────────────────
# Lifecycle & Health
# ────────────────────────────────────────────────────────────────

@app.on_event("startup")
async def on_startup():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    async with AsyncSessionLocal() as session:
        await seed_initial_data(session)
    logger.info("Storefront catalog backend started")


@app.get("/health")
async def health():
    return {"status": "ok", "catalog_cache": get_catalog_cache().stats().to_dict()}
