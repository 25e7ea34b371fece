import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from portal.core.config import settings
from portal.core.database import init_db
from portal.core.errors import http_exception_handler, unhandled_exception_handler, validation_exception_handler
from portal.routes.admin import router as admin_router
from portal.routes.auth import router as auth_router
from portal.routes.employee import router as employee_router
from portal.routes.health import router as health_router
from portal.routes.notes import router as notes_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


def create_app() -> FastAPI:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title="Portal API", version="0.1.0", lifespan=lifespan)

    origins = settings.cors_origins
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            allow_headers=["Content-Type", "Authorization"],
        )

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(health_router, tags=["health"])
    app.include_router(auth_router, prefix="/api", tags=["auth"])
    app.include_router(notes_router, prefix="/api/admin/notes", tags=["admin"])
    app.include_router(admin_router, prefix="/api/admin", tags=["admin"])
    app.include_router(employee_router, prefix="/api/employee", tags=["employee"])

    return app


app = create_app()
