from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from subfinder.api.routes import (
    auth,
    classes,
    health,
    notifications,
    organizations,
    requests,
    settings as settings_routes,
    users,
)
from subfinder.core.config import get_settings
from subfinder.core.exceptions import AppError
from subfinder.db.bootstrap import ensure_runtime_schema
from subfinder.db.seed import seed_demo_data
from subfinder.db.session import create_store

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Tests install their own store before startup.
    if getattr(app.state, "store", None) is None:
        app.state.store = create_store(settings)
    ensure_runtime_schema(app.state.store)
    if settings.seed_demo_data:
        logger.info(seed_demo_data(app.state.store))
    yield


async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message, "details": exc.details},
    )


app = FastAPI(title=settings.project_name, lifespan=lifespan)
app.add_exception_handler(AppError, app_error_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, prefix=settings.api_prefix, tags=["health"])
app.include_router(auth.router, prefix=f"{settings.api_prefix}/auth", tags=["auth"])
app.include_router(organizations.router, prefix=f"{settings.api_prefix}/organizations", tags=["organizations"])
app.include_router(classes.router, prefix=f"{settings.api_prefix}/classes", tags=["classes"])
app.include_router(users.router, prefix=f"{settings.api_prefix}/users", tags=["users"])
app.include_router(requests.router, prefix=f"{settings.api_prefix}/requests", tags=["requests"])
app.include_router(notifications.router, prefix=settings.api_prefix, tags=["notifications"])
app.include_router(settings_routes.router, prefix=settings.api_prefix, tags=["settings"])
