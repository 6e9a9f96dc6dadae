import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.api import dating
from app.cache import CacheManager
from app.config import Settings
from app.db import DatabaseManager
from app.schemas.responses import HealthCheckResponseSchema
from app.services.auth import AuthService
from app.services.candidate import CandidateService
from app.services.match import MatchService
from app.services.profile_index import ProfileIndexCache, local_now, zone_clock
from app.services.swipe_log import SwipeLogService
from app.services.user_directory import UserDirectoryService


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = Settings.from_environ()
    logging.basicConfig(level=settings.log_level)

    db_manager = DatabaseManager(settings)
    db_manager.verify_connectivity()
    db_manager.ensure_schema()
    cache_manager = CacheManager(settings)
    cache_manager.connect()

    swipe_log = SwipeLogService(db_manager)
    user_directory = UserDirectoryService(db_manager)
    clock = zone_clock(settings.timezone) if settings.timezone else local_now
    index_cache = ProfileIndexCache(
        cache_manager.client,
        swipe_log,
        key_prefix=settings.cache_key_prefix,
        clock=clock,
    )
    app.state.auth_service = AuthService(settings)
    app.state.match_service = MatchService(
        swipe_log,
        user_directory,
        index_cache,
        daily_like_limit=settings.daily_like_limit,
        clock=clock,
    )
    app.state.candidate_service = CandidateService(
        user_directory, index_cache, oversample=settings.candidate_oversample
    )
    yield
    cache_manager.close()
    db_manager.close()


app = FastAPI(lifespan=lifespan)
app.include_router(dating.router, prefix="/api")


@app.get("/api/health", response_model=HealthCheckResponseSchema)
async def health_check() -> HealthCheckResponseSchema:
    return HealthCheckResponseSchema(success=True)
