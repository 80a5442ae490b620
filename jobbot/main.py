"""
JobBot AI - FastAPI Backend
Application factory and module-level app
"""

import logging
from contextlib import asynccontextmanager
from typing import Callable, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlmodel import Session

from .api.routes import api_router
from .core.config import Settings, settings
from .db.database import build_engine, create_db_and_tables
from .db.storage import Storage
from .services.browser import BrowserAutomationService
from .services.llm import LLMService
from .services.scheduler import ScheduledJobSearchService
from .services.scraper import JobScraperService

logger = logging.getLogger(__name__)


def create_app(
    config: Optional[Settings] = None,
    llm: Optional[LLMService] = None,
    scraper_factory: Optional[Callable] = None,
    browser_factory: Optional[Callable] = None,
) -> FastAPI:
    """
    Build the API with its database, LLM service and job search scheduler

    Args:
        config: Settings to use, defaults to the environment
        llm: LLM service, defaults to one built from config
        scraper_factory: Callable returning a job scraper for a Settings object
        browser_factory: Callable returning browser automation for a Settings object
    """
    config = config or settings
    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    engine = build_engine(config.database_url, echo=config.debug)
    llm = llm or LLMService(config)
    scraper_factory = scraper_factory or JobScraperService
    browser_factory = browser_factory or BrowserAutomationService
    scheduler = ScheduledJobSearchService(
        engine,
        llm,
        config=config,
        scraper_factory=scraper_factory,
        browser_factory=browser_factory,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        create_db_and_tables(engine)

        # A key saved through /api/system/config outlives restarts
        with Session(engine) as session:
            saved = Storage(session).get_system_config(config.default_user_id)
        if saved and saved.openai_api_key:
            llm.configure(openai_api_key=saved.openai_api_key)

        logger.info(f"🚀 {config.app_name} v{config.version} started")
        yield
        await scheduler.stop()
        logger.info("👋 Shutting down")

    app = FastAPI(
        title=config.app_name,
        description="Backend API for automated job search, matching and applications",
        version=config.version,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.settings = config
    app.state.engine = engine
    app.state.llm = llm
    app.state.scheduler = scheduler
    app.state.scraper_factory = scraper_factory
    app.state.browser_factory = browser_factory

    # Include API routes
    app.include_router(api_router, prefix="/api")

    @app.get("/")
    async def root():
        """Root endpoint"""
        return {"message": config.app_name, "version": config.version}

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": "jobbot-api",
            "llm_provider": await llm.get_active_provider(),
            "automation_running": scheduler.is_running,
        }

    return app


app = create_app()
