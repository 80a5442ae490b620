"""
Periodic job search: scrape configured boards, store new jobs and hand
them to the application pipeline
"""

import asyncio
import logging
import re
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from ..core.config import Settings, settings
from ..core.utils import utcnow
from ..db.storage import Storage
from ..models.automation import JobSearchConfig
from ..models.job import Job, ScrapedJob
from .applications import IntelligentApplicationService
from .llm import LLMService
from .matcher import JobMatcherService
from .scraper import JobScraperService, to_job_create

logger = logging.getLogger(__name__)

# "$120,000", "$95k" or "120k"; the first figure found wins
SALARY_PATTERN = re.compile(r"\$\s?(\d[\d,]*)(k?)|(\d[\d,]*)(k)\b")


def extract_salary(text: str) -> Optional[int]:
    match = SALARY_PATTERN.search((text or "").lower())
    if not match:
        return None

    digits = match.group(1) or match.group(3)
    thousands = match.group(2) or match.group(4)
    value = int(digits.replace(",", ""))
    return value * 1000 if thousands else value


def matches_salary_filter(job: Any, config: JobSearchConfig) -> bool:
    """Whether a job's advertised salary falls inside the configured range"""
    if not config.salary_min and not config.salary_max:
        return True

    salary = extract_salary(job.salary or job.description or "")
    if salary is None:
        return True

    if config.salary_min and salary < config.salary_min:
        return False
    if config.salary_max and salary > config.salary_max:
        return False
    return True


def persist_new_jobs(storage: Storage, scraped: List[ScrapedJob], config: Optional[JobSearchConfig] = None) -> List[Job]:
    """
    Store scraped jobs that are not already known

    Args:
        storage: Repository to write to
        scraped: Jobs returned by the scraper
        config: When given, jobs outside its salary range are dropped

    Returns:
        The newly created jobs
    """
    saved = []
    for item in scraped:
        if storage.find_job_by_external_id(item.job_board, item.external_id):
            continue
        if config is not None and not matches_salary_filter(item, config):
            continue
        try:
            saved.append(storage.create_job(to_job_create(item)))
        except SQLAlchemyError as e:
            storage.session.rollback()
            logger.error(f"Error saving scraped job {item.title}: {e}")
    return saved


class ScheduledJobSearchService:
    """Runs the configured job search on a fixed interval"""

    def __init__(
        self,
        engine: Engine,
        llm: LLMService,
        config: Settings = settings,
        scraper_factory: Callable[[Settings], JobScraperService] = JobScraperService,
        browser_factory: Optional[Callable] = None,
    ):
        self.engine = engine
        self.llm = llm
        self.config = config
        self.scraper_factory = scraper_factory
        self.browser_factory = browser_factory
        self.is_running = False
        self.next_run_time: Optional[datetime] = None
        self.last_run_at: Optional[datetime] = None
        self._task: Optional[asyncio.Task] = None
        self._generation = 0

    @property
    def interval_seconds(self) -> float:
        return self.config.search_interval_hours * 3600

    async def start(self) -> None:
        """Run one search now, then keep searching every interval"""
        if self.is_running:
            logger.info("Automatic job search is already running")
            return

        self.is_running = True
        self._generation += 1
        generation = self._generation
        logger.info("Starting automatic job search service...")
        try:
            await self.perform_job_search()
        except Exception:
            if generation == self._generation:
                self.is_running = False
            raise

        # stop() or another start() ran while the first search was in flight
        if generation != self._generation:
            logger.info("Automatic job search was stopped before its first run finished")
            return

        self._task = asyncio.create_task(self._run_loop())
        logger.info(f"Automatic job search scheduled to run every {self.config.search_interval_hours:g} hours")

    async def stop(self) -> None:
        self._generation += 1
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        self.is_running = False
        self.next_run_time = None
        logger.info("Automatic job search stopped")

    async def _run_loop(self) -> None:
        while True:
            self.next_run_time = utcnow() + timedelta(seconds=self.interval_seconds)
            await asyncio.sleep(self.interval_seconds)
            try:
                await self.perform_job_search()
            except Exception as e:
                logger.error(f"❌ Scheduled job search crashed: {e}")

    def status(self) -> Dict[str, Any]:
        return {
            "is_running": self.is_running,
            "next_run_time": self.next_run_time,
            "last_run_at": self.last_run_at,
            "interval_hours": self.config.search_interval_hours,
        }

    async def perform_job_search(self) -> List[Job]:
        """
        Scrape with the user's saved search configuration and store new jobs

        Returns:
            Jobs saved by this run
        """
        user_id = self.config.default_user_id
        logger.info("🔍 Starting automated job search...")

        with Session(self.engine) as session:
            storage = Storage(session)
            search_config = storage.get_job_search_config(user_id)

            if not search_config or not search_config.keywords:
                logger.info("❌ No job search configuration found. Skipping automated search.")
                return []
            if not search_config.is_active:
                logger.info("⏸️ Job search is disabled. Skipping automated search.")
                return []

            logger.info(
                f"🎯 Searching for: {', '.join(search_config.keywords)} "
                f"in {', '.join(search_config.locations) or 'all locations'}"
            )

            try:
                async with self.scraper_factory(self.config) as scraper:
                    scraped = await scraper.scrape_all_job_boards(
                        search_config.keywords,
                        search_config.locations,
                        self.config.scheduled_search_limit,
                        search_config.job_boards,
                    )
                logger.info(f"📊 Found {len(scraped)} jobs from web scraping")

                saved = persist_new_jobs(storage, scraped, search_config)
                storage.log_action(
                    user_id, "automated_job_search", "success",
                    keywords=search_config.keywords,
                    locations=search_config.locations,
                    jobs_found=len(saved),
                    total_scraped=len(scraped),
                    timestamp=utcnow().isoformat(),
                )
            except Exception as e:
                logger.error(f"❌ Error in automated job search: {e}")
                session.rollback()
                storage.log_action(
                    user_id, "automated_job_search", "failed",
                    error=str(e), timestamp=utcnow().isoformat(),
                )
                return []
            finally:
                self.last_run_at = utcnow()

            logger.info(f"✅ Automated job search completed: {len(saved)} new jobs saved")
            if saved:
                await self.process_new_jobs(storage, user_id, saved)
            return saved

    async def process_new_jobs(self, storage: Storage, user_id: str, jobs: List[Job]) -> List[Any]:
        """Auto-apply when automation is on, otherwise just score the jobs"""
        logger.info(f"🤖 Processing {len(jobs)} new jobs for potential automation...")

        system_config = storage.get_system_config(user_id)
        if system_config and system_config.automation_enabled:
            service = IntelligentApplicationService(
                storage, self.llm, config=self.config, browser_factory=self.browser_factory
            )
            limit = min(self.config.auto_apply_batch_limit, system_config.daily_application_limit)
            return await service.process_job_batch(user_id, jobs, max_applications=limit)

        scores = await JobMatcherService(storage, self.llm).auto_score_new_jobs(user_id, jobs)
        titles = {job.id: f"{job.title} at {job.company}" for job in jobs}
        for score in scores[:5]:
            logger.info(f"⭐ {score.score:.0f}% match: {titles.get(score.job_id)}")
        return scores
