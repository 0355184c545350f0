"""Storefront API main application module.

This module builds the FastAPI application and wires the write-side
core at startup: database engine, event dispatcher, unit of work,
Redis cache, cache invalidation listeners and the use-case services.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI

from storefront.api.carts import router as carts_router
from storefront.api.errors import setup_exception_handlers
from storefront.api.health import router as health_router
from storefront.api.middleware import setup_middleware
from storefront.application.cache_invalidation import (
    UserCacheInvalidationService,
    register_cache_invalidation_listeners,
)
from storefront.application.cart_service import CartService
from storefront.application.discount_service import DiscountService
from storefront.application.event_dispatcher import EventDispatcher
from storefront.application.payment_service import PaymentService
from storefront.application.user_queries import UserQueryService
from storefront.infrastructure.cache import RedisCache
from storefront.infrastructure.config import Settings, settings as default_settings
from storefront.infrastructure.database import (
    build_engine,
    build_session_factory,
    create_all,
)
from storefront.infrastructure.logging_config import configure_logging
from storefront.infrastructure.repositories import SqlAlchemyUserReadRepository
from storefront.infrastructure.unit_of_work import UnitOfWork

logger = structlog.get_logger()


def create_app(
    settings: Settings | None = None,
    cache: RedisCache | None = None,
) -> FastAPI:
    """Build the application.

    Args:
        settings: Configuration, defaults to the environment.
        cache: Cache to use instead of connecting to ``settings.redis_url``.
    """
    config = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        configure_logging(config.log_level, json=config.log_json)
        logger.info(
            "Starting Storefront API",
            version=config.api_version,
            debug=config.debug,
        )

        engine = build_engine(config.database_url, echo=config.database_echo)
        if config.database_create_all:
            await create_all(engine)
        session_factory = build_session_factory(engine)

        app_cache = cache or RedisCache.from_url(
            config.redis_url,
            prefix=config.cache_prefix,
            default_ttl=config.cache_default_ttl,
        )
        dispatcher = EventDispatcher(background=config.event_dispatch_background)
        uow = UnitOfWork(session_factory, publisher=dispatcher)

        users = SqlAlchemyUserReadRepository(session_factory=session_factory)
        invalidation = UserCacheInvalidationService(app_cache, users)
        register_cache_invalidation_listeners(dispatcher, invalidation, app_cache)

        app.state.engine = engine
        app.state.cache = app_cache
        app.state.dispatcher = dispatcher
        app.state.uow = uow
        app.state.cart_service = CartService(uow)
        app.state.payment_service = PaymentService(uow)
        app.state.discount_service = DiscountService(uow)
        app.state.user_queries = UserQueryService(app_cache, users)

        yield

        logger.info("Shutting down Storefront API", pending_dispatches=dispatcher.pending)
        await dispatcher.wait_idle()
        if cache is None:
            await app_cache.close()
        await engine.dispose()

    app = FastAPI(
        title="Storefront API",
        description="E-commerce write-side core",
        version=config.api_version,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    setup_middleware(app)
    setup_exception_handlers(app)

    app.include_router(health_router, tags=["Health"])
    app.include_router(carts_router)

    return app


app = create_app()
