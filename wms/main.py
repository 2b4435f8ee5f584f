# wms/main.py
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from wms.api.exception_handlers import register_exception_handlers
from wms.api.router import api_router
from wms.core.config import settings
from wms.core.logging import configure_logging


def create_app() -> FastAPI:
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title=settings.PROJECT_NAME,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.include_router(api_router, prefix=settings.API_V1_STR)

    # Health
    @app.get("/")
    def root():
        return {"message": f"{settings.PROJECT_NAME} API running", "version": "v1"}

    return app


app = create_app()
