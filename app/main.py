from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api_routers.v1 import api_router
from app.features.health.routes.health import router as health_router
from app.features.waitlist.routes.waitlist import router as waitlist_router
from app.features.waitlist.services.notifications import WaitlistNotifier
from app.platform.cache.redis import create_redis
from app.platform.config import Settings, settings as default_settings
from app.platform.db.session import create_engine_and_sessionmaker, create_tables
from app.platform.exceptions import add_exception_handlers
from app.platform.logger import get_logger
from app.platform.services.email import get_mail_transport
from app.platform.utils.rate_limit import create_rate_limiter

logger = get_logger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Collaborators are built once here and reused for every request
        engine, session_factory = create_engine_and_sessionmaker(settings.DATABASE_URL)
        if settings.AUTO_CREATE_TABLES:
            await create_tables(engine)

        redis = None if settings.FORCE_IN_MEMORY_RATE_LIMITER else create_redis(settings.REDIS_URL)

        app.state.engine = engine
        app.state.sessionmaker = session_factory
        app.state.redis = redis
        app.state.rate_limiter = create_rate_limiter(settings, redis)
        app.state.notifier = WaitlistNotifier(
            transport=get_mail_transport(settings),
            app_name=settings.MAIL_FROM_NAME,
            landing_page_url=settings.LANDING_PAGE_URL,
        )
        logger.info(f"{settings.APP_NAME} started ({settings.ENVIRONMENT})")

        try:
            yield
        finally:
            if redis is not None:
                await redis.aclose()
            await engine.dispose()

    app = FastAPI(
        title=f"{settings.APP_NAME} API",
        description="Waiting list signups with referral tracking",
        version="1.0.0",
        debug=settings.DEBUG,
        lifespan=lifespan,
    )
    app.state.settings = settings

    # Root endpoint for basic info
    @app.get("/", tags=["Info"])
    def root():
        return {
            "app_name": f"{settings.APP_NAME} API",
            "description": "Join the MaxMove launch waiting list and invite friends.",
            "version": "1.0.0",
            "docs_url": "/docs",
            "api_base": "/api/v1",
        }

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    add_exception_handlers(app)

    app.include_router(waitlist_router)
    app.include_router(health_router)
    app.include_router(api_router, prefix="/api/v1")

    return app


app = create_app()
