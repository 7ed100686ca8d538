from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from framework.config import settings
from framework.response import ResponseModel
from framework.middleware.logging_md import LoggingMiddleware
from framework.logging.logger import LogConfig, get_logger
from framework.exceptions.errors import InfrastructureError
from framework.exceptions.handler import BusinessException, global_exception_handler
from apps.container import build_container
from apps.auth.api.router import router as auth_router
from apps.users.api.router import router as users_router

# Initialize logging configuration
LogConfig.setup_logging()
logger = get_logger("main")

@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.container = await build_container(settings)
    logger.info(f"{settings.APP_NAME} started (storage={settings.STORAGE_BACKEND})")
    try:
        yield
    finally:
        await app.state.container.close()
        logger.info(f"{settings.APP_NAME} stopped")

app = FastAPI(
    title=settings.APP_NAME,
    description=settings.APP_DESCRIPTION,
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan
)

# Register global exception handlers
app.add_exception_handler(BusinessException, global_exception_handler)
app.add_exception_handler(RequestValidationError, global_exception_handler)
app.add_exception_handler(InfrastructureError, global_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)

app.add_middleware(LoggingMiddleware)

# Mount routers (prefix from config for easy override in private projects)
app.include_router(
    auth_router,
    prefix=settings.API_V1_AUTH_PREFIX,
    tags=["Auth"]
)

app.include_router(
    users_router,
    prefix=settings.API_V1_USERS_PREFIX,
    tags=["Users"]
)

@app.get("/health")
async def health(request: Request):
    """Liveness plus a ping of whatever stores are wired."""
    container = request.app.state.container
    checks = {"storage": settings.STORAGE_BACKEND}
    if container.database is not None:
        if settings.STORAGE_BACKEND == "sql":
            checks["database"] = await container.database.mysql.ping()
        if settings.CODE_STORE_DRIVER == "redis":
            checks["redis"] = await container.database.redis.ping()
    return ResponseModel.success(data=checks)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
