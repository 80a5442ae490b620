"""
Shared FastAPI dependencies
"""

from typing import Callable

from fastapi import Depends, Request
from sqlmodel import Session

from ..core.config import Settings
from ..db.database import get_session
from ..db.storage import Storage
from ..services.applications import IntelligentApplicationService
from ..services.browser import BrowserAutomationService
from ..services.learning import AdaptiveLearningService
from ..services.llm import LLMService
from ..services.matcher import JobMatcherService
from ..services.scheduler import ScheduledJobSearchService


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_storage(session: Session = Depends(get_session)) -> Storage:
    return Storage(session)


def get_user_id(config: Settings = Depends(get_settings)) -> str:
    """Single-user mode: every request acts as the configured user"""
    return config.default_user_id


def get_llm(request: Request) -> LLMService:
    return request.app.state.llm


def get_scheduler(request: Request) -> ScheduledJobSearchService:
    return request.app.state.scheduler


def get_scraper_factory(request: Request) -> Callable:
    return request.app.state.scraper_factory


def get_browser_factory(request: Request) -> Callable[[Settings], BrowserAutomationService]:
    return request.app.state.browser_factory


def get_matcher(
    storage: Storage = Depends(get_storage),
    llm: LLMService = Depends(get_llm),
) -> JobMatcherService:
    return JobMatcherService(storage, llm)


def get_application_service(
    storage: Storage = Depends(get_storage),
    llm: LLMService = Depends(get_llm),
    config: Settings = Depends(get_settings),
    browser_factory: Callable = Depends(get_browser_factory),
) -> IntelligentApplicationService:
    return IntelligentApplicationService(storage, llm, config=config, browser_factory=browser_factory)


def get_learning_service(
    storage: Storage = Depends(get_storage),
    llm: LLMService = Depends(get_llm),
) -> AdaptiveLearningService:
    return AdaptiveLearningService(storage, llm)
