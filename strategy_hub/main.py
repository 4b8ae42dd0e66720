# strategy_hub/main.py
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.health import health_router
from .api.users import router as users_router
from .api.auth import router as auth_router
from .strategy_engine import router as strategy_router
from .strategy_engine import social_router
from .strategy_engine.generation import StrategyGenerator
from .services.llm_client import TextGenerationClient
from .utils.config import get_settings
from .utils.logger import log, configure_log_level
from .utils.env_validator import validate_env_vars, log_env_validation
from .utils.sentry_setup import init_sentry, APP_VERSION
from .utils.error_handler import register_error_handlers
from .middleware.jwt_auth import JWTAuthMiddleware
from .middleware.security_headers import SecurityHeadersMiddleware
from .middleware.rate_limiter import build_throttle
from .db.session import engine
from .db.models import Base


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    settings = get_settings()
    configure_log_level(settings.log_level)

    env_validation = validate_env_vars(settings)
    log_env_validation(env_validation)

    init_sentry(settings)

    # create tables
    Base.metadata.create_all(bind=engine)
    log(f"Strategy Hub started ({settings.environment})")

    yield

    # Shutdown
    app.state.generator.client.close()


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(
        title="Strategy Hub API",
        version=APP_VERSION,
        description="Trading strategy library: authoring, sharing, ratings, comments, templates and AI drafts",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    app.state.throttle = build_throttle(
        settings.strategy_create_limit,
        settings.strategy_create_window_seconds,
        settings.redis_url,
    )
    app.state.generator = StrategyGenerator(TextGenerationClient.from_settings(settings))

    register_error_handlers(app)

    app.include_router(health_router)
    app.include_router(strategy_router, prefix="/api")
    app.include_router(social_router, prefix="/api")
    app.include_router(users_router, prefix="/api")
    app.include_router(auth_router, prefix="/api")

    app.add_middleware(JWTAuthMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    # Added last so it is outermost and answers OPTIONS preflights
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=3600,
    )

    return app

app = create_app()

if __name__ == "__main__":
    log("Starting Strategy Hub at http://localhost:8000 ...")
    uvicorn.run("strategy_hub.main:app", host="0.0.0.0", port=8000, reload=True)
