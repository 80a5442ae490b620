import asyncio

import pytest

from jobbot.models.automation import JobSearchConfig, JobSearchConfigBase, SystemConfigBase
from jobbot.models.job import ScrapedJob
from jobbot.services.scheduler import (
    ScheduledJobSearchService,
    extract_salary,
    matches_salary_filter,
    persist_new_jobs,
)

from conftest import FakeScraper


def listing(external_id: str, salary=None, description: str = "") -> ScrapedJob:
    return ScrapedJob(
        title=f"Engineer {external_id}",
        company="Acme",
        description=description,
        salary=salary,
        url=f"https://example.com/{external_id}",
        external_id=external_id,
        job_board="Indeed",
    )


@pytest.mark.parametrize("text, expected", [
    ("$120,000 - $150,000 a year", 120000),
    ("Pays $95k plus equity", 95000),
    ("Salary 130K", 130000),
    ("5 years of experience", None),
    ("", None),
])
def test_extract_salary(text, expected):
    assert extract_salary(text) == expected


def test_salary_filter():
    config = JobSearchConfig(user_id="u1", salary_min=100000, salary_max=160000)

    assert matches_salary_filter(listing("a", salary="$120k"), config)
    assert not matches_salary_filter(listing("b", salary="$90,000"), config)
    assert not matches_salary_filter(listing("c", description="Up to $200k"), config)
    assert matches_salary_filter(listing("d", description="Competitive pay"), config)


def test_salary_filter_without_range_accepts_everything():
    config = JobSearchConfig(user_id="u1")

    assert matches_salary_filter(listing("a", salary="$10"), config)


def test_persist_new_jobs_skips_known_and_out_of_range(storage):
    config = JobSearchConfig(user_id="u1", salary_min=100000)
    persist_new_jobs(storage, [listing("known")])

    saved = persist_new_jobs(storage, [
        listing("known"),
        listing("cheap", salary="$50k"),
        listing("fresh", salary="$110k"),
    ], config)

    assert [job.external_id for job in saved] == ["fresh"]


@pytest.fixture
def make_service(engine, llm, settings):
    def _make_service(scraper=None, browser_factory=None):
        return ScheduledJobSearchService(
            engine, llm, config=settings, scraper_factory=scraper or FakeScraper(), browser_factory=browser_factory,
        )
    return _make_service


def save_search_config(storage, settings, **overrides):
    data = {"user_id": settings.default_user_id, "keywords": ["python"], "locations": ["Remote"]}
    data.update(overrides)
    return storage.create_job_search_config(JobSearchConfigBase(**data))


def test_perform_job_search_without_config_does_nothing(make_service, scraper):
    service = make_service(scraper)

    assert asyncio.run(service.perform_job_search()) == []
    assert scraper.calls == []


def test_perform_job_search_skips_inactive_config(make_service, scraper, storage, settings):
    save_search_config(storage, settings, is_active=False)

    assert asyncio.run(make_service(scraper).perform_job_search()) == []
    assert scraper.calls == []


def test_perform_job_search_saves_jobs_and_logs(make_service, scraper, storage, settings):
    save_search_config(storage, settings, job_boards=["Indeed"])
    service = make_service(scraper)

    saved = asyncio.run(service.perform_job_search())

    assert len(saved) == 2
    assert scraper.calls[0]["keywords"] == ["python"]
    assert scraper.calls[0]["limit"] == settings.scheduled_search_limit
    assert scraper.calls[0]["job_boards"] == ["Indeed"]
    assert scraper.closed
    assert service.last_run_at is not None

    logs = storage.get_automation_logs(settings.default_user_id)
    assert logs[0].action == "automated_job_search"
    assert logs[0].status == "success"
    assert logs[0].details["jobs_found"] == 2

    # Second run finds nothing new
    assert asyncio.run(service.perform_job_search()) == []


def test_perform_job_search_logs_scraper_failure(make_service, storage, settings):
    save_search_config(storage, settings)
    service = make_service(FakeScraper(error=RuntimeError("boom")))

    assert asyncio.run(service.perform_job_search()) == []

    logs = storage.get_automation_logs(settings.default_user_id)
    assert logs[0].status == "failed"
    assert logs[0].details["error"] == "boom"


def test_new_jobs_are_scored_when_automation_is_off(make_service, storage, settings, make_job, make_resume):
    make_resume()
    jobs = [make_job(), make_job(description="Rust", requirements=None)]

    results = asyncio.run(make_service().process_new_jobs(storage, settings.default_user_id, jobs))

    assert [r.job_id for r in results] == [jobs[0].id, jobs[1].id]
    assert results[0].score > results[1].score


def test_daily_limit_caps_auto_applications(make_service, storage, settings, make_job, make_resume):
    make_resume()
    storage.create_system_config(SystemConfigBase(
        user_id=settings.default_user_id, automation_enabled=True, daily_application_limit=0,
    ))

    results = asyncio.run(make_service().process_new_jobs(storage, settings.default_user_id, [make_job()]))

    assert results == []
    assert storage.get_applications(settings.default_user_id) == []


def test_start_and_stop(make_service):
    service = make_service()

    async def run():
        await service.start()
        await asyncio.sleep(0)
        running = service.status()
        await service.stop()
        return running, service.status()

    running, stopped = asyncio.run(run())

    assert running["is_running"] is True
    assert running["next_run_time"] is not None
    assert running["last_run_at"] is None  # no search config, so no search ran
    assert stopped["is_running"] is False
    assert stopped["next_run_time"] is None


def test_start_twice_keeps_single_loop(make_service):
    service = make_service()

    async def run():
        await service.start()
        task = service._task
        await service.start()
        same = service._task is task
        await service.stop()
        return same

    assert asyncio.run(run()) is True


def test_stop_during_first_search_leaves_no_loop(make_service, storage, settings):
    save_search_config(storage, settings)

    async def run():
        entered, release = asyncio.Event(), asyncio.Event()
        scraper = FakeScraper()
        scrape = scraper.scrape_all_job_boards

        async def slow_scrape(*args, **kwargs):
            entered.set()
            await release.wait()
            return await scrape(*args, **kwargs)

        scraper.scrape_all_job_boards = slow_scrape
        service = make_service(scraper)

        starting = asyncio.create_task(service.start())
        await entered.wait()
        await service.stop()
        release.set()
        await starting
        return service

    service = asyncio.run(run())

    assert service.is_running is False
    assert service._task is None
    assert service.status()["next_run_time"] is None
