import asyncio

import pytest

from jobbot.models.job import ScrapedJob
from jobbot.services.scraper import (
    JobScraperService,
    dedupe_jobs,
    parse_indeed,
    parse_linkedin,
    parse_remoteok,
    parse_stackoverflow,
    to_job_create,
)

INDEED_HTML = """
<html><body>
  <div class="jobsearch-SerpJobCard" data-jk="abc123">
    <h2 class="jobTitle"><a><span>Python   Developer</span></a></h2>
    <span class="companyName">Acme Corp</span>
    <div class="companyLocation">Austin, TX</div>
    <div class="job-snippet">Build data pipelines in Python.</div>
  </div>
  <div class="jobsearch-SerpJobCard" data-jk="nocompany">
    <h2 class="jobTitle"><a><span>Ghost Job</span></a></h2>
  </div>
  <div class="jobsearch-SerpJobCard" data-jk="def456">
    <h2 class="jobTitle"><a><span>Django Engineer</span></a></h2>
    <span class="companyName">Globex</span>
  </div>
  <div class="jobsearch-SerpJobCard" data-jk="ghi789">
    <h2 class="jobTitle"><a><span>API Engineer</span></a></h2>
    <span class="companyName">Initech</span>
  </div>
</body></html>
"""

LINKEDIN_HTML = """
<ul>
  <li class="base-card">
    <a class="base-card__full-link" href="https://www.linkedin.com/jobs/view/python-dev-42/"></a>
    <h3 class="base-search-card__title">Python Developer</h3>
    <h4 class="base-search-card__subtitle">Hooli</h4>
    <span class="job-search-card__location">San Francisco, CA</span>
  </li>
</ul>
"""

REMOTEOK_HTML = """
<table>
  <tr class="job" data-id="9001">
    <td>
      <h2 class="position">Backend Engineer</h2>
      <h3 class="company">Pied Piper</h3>
      <div class="tags"><span class="tag">python</span><span class="tag">aws</span></div>
    </td>
  </tr>
  <tr class="job" data-id="9002">
    <td>
      <h2 class="position">Product Designer</h2>
      <h3 class="company">Hooli</h3>
      <div class="tags"><span class="tag">figma</span></div>
    </td>
  </tr>
</table>
"""

STACKOVERFLOW_HTML = """
<div class="listResults">
  <div class="result">
    <a class="job-link" href="/jobs/123/senior-engineer">Senior Engineer</a>
    <h3 class="fc-black-700">Umbrella</h3>
    <a class="post-tag">django</a><a class="post-tag">postgresql</a>
  </div>
  <div class="result">
    <a class="job-link" href="/jobs/124/ios">iOS Developer</a>
    <h3 class="fc-black-700">Umbrella</h3>
    <a class="post-tag">swift</a>
  </div>
</div>
"""


def scraped(title: str, company: str, board: str = "Indeed") -> ScrapedJob:
    return ScrapedJob(
        title=title,
        company=company,
        url=f"https://example.com/{title}",
        external_id=f"{company}-{title}",
        job_board=board,
    )


def test_parse_indeed_skips_incomplete_cards():
    jobs = parse_indeed(INDEED_HTML, limit=10)

    assert [job.external_id for job in jobs] == ["abc123", "def456", "ghi789"]
    first = jobs[0]
    assert first.title == "Python Developer"
    assert first.company == "Acme Corp"
    assert first.location == "Austin, TX"
    assert first.description == "Build data pipelines in Python."
    assert first.url == "https://www.indeed.com/job/abc123"
    assert first.job_board == "Indeed"
    assert jobs[1].location is None


def test_parse_indeed_honors_limit():
    assert len(parse_indeed(INDEED_HTML, limit=2)) == 2


def test_parse_linkedin():
    search_url = "https://www.linkedin.com/jobs/search?keywords=python"
    jobs = parse_linkedin(LINKEDIN_HTML, "python", search_url, limit=5)

    assert len(jobs) == 1
    job = jobs[0]
    assert job.external_id == "python-dev-42"
    assert job.url == "https://www.linkedin.com/jobs/view/python-dev-42/"
    assert job.description == "python position at Hooli"
    assert job.location == "San Francisco, CA"


def test_parse_remoteok_filters_on_title_and_tags():
    jobs = parse_remoteok(REMOTEOK_HTML, ["Python"], limit=5)

    assert len(jobs) == 1
    job = jobs[0]
    assert job.title == "Backend Engineer"
    assert job.location == "Remote"
    assert job.description == "python, aws"
    assert job.url == "https://remoteok.io/remote-jobs/9001"


def test_parse_stackoverflow():
    jobs = parse_stackoverflow(STACKOVERFLOW_HTML, ["django"], limit=5)

    assert len(jobs) == 1
    assert jobs[0].url == "https://stackoverflow.com/jobs/123/senior-engineer"
    assert jobs[0].description == "Technologies: django, postgresql"
    assert jobs[0].job_board == "Stack Overflow"


def test_dedupe_jobs_ignores_case_and_whitespace():
    jobs = [
        scraped("Python Developer", "Acme"),
        scraped("python developer ", "ACME", board="LinkedIn"),
        scraped("Python Developer", "Globex"),
    ]

    unique = dedupe_jobs(jobs)

    assert [(job.company, job.job_board) for job in unique] == [("Acme", "Indeed"), ("Globex", "Indeed")]


def test_to_job_create_keeps_board_identity():
    job = to_job_create(scraped("Python Developer", "Acme", board="RemoteOK"))

    assert job.job_board == "RemoteOK"
    assert job.external_id == "Acme-Python Developer"
    assert job.is_active is True


@pytest.fixture
def service(settings):
    return JobScraperService(settings)


def test_scrape_all_job_boards_survives_failing_board(service, monkeypatch):
    calls = {}

    async def indeed(keywords, locations, limit):
        calls["Indeed"] = limit
        return [scraped("Python Developer", "Acme"), scraped("Go Developer", "Acme")]

    async def remoteok(keywords, limit):
        calls["RemoteOK"] = limit
        raise RuntimeError("blocked")

    async def linkedin(keywords, locations, limit):
        calls["LinkedIn"] = limit
        return [scraped("python developer", "acme", board="LinkedIn")]

    async def stackoverflow(keywords, limit):
        calls["Stack Overflow"] = limit
        return [scraped("Rust Developer", "Umbrella", board="Stack Overflow")]

    monkeypatch.setattr(service, "scrape_indeed", indeed)
    monkeypatch.setattr(service, "scrape_remoteok", remoteok)
    monkeypatch.setattr(service, "scrape_linkedin", linkedin)
    monkeypatch.setattr(service, "scrape_stackoverflow", stackoverflow)

    jobs = asyncio.run(service.scrape_all_job_boards(["python"], ["Remote"], limit=10))

    assert calls == {"Indeed": 4, "RemoteOK": 3, "LinkedIn": 2, "Stack Overflow": 1}
    assert [job.title for job in jobs] == ["Python Developer", "Go Developer", "Rust Developer"]


def test_scrape_all_job_boards_only_selected_boards(service, monkeypatch):
    called = []

    def fake(name):
        async def scrape(*args):
            called.append(name)
            return [scraped(f"{name} job", name)]
        return scrape

    for attr, name in [
        ("scrape_indeed", "Indeed"),
        ("scrape_remoteok", "RemoteOK"),
        ("scrape_linkedin", "LinkedIn"),
        ("scrape_stackoverflow", "Stack Overflow"),
    ]:
        monkeypatch.setattr(service, attr, fake(name))

    jobs = asyncio.run(service.scrape_all_job_boards(["python"], limit=20, job_boards=["indeed", "stackoverflow"]))

    assert sorted(called) == ["Indeed", "Stack Overflow"]
    assert len(jobs) == 2


def test_scrape_all_job_boards_skips_boards_with_no_quota(service, monkeypatch):
    called = []

    async def scrape(*args):
        called.append(args[-1])
        return []

    for attr in ("scrape_indeed", "scrape_remoteok", "scrape_linkedin", "scrape_stackoverflow"):
        monkeypatch.setattr(service, attr, scrape)

    asyncio.run(service.scrape_all_job_boards(["python"], limit=4))

    # LinkedIn and Stack Overflow quotas round down to zero
    assert sorted(called) == [1, 1]
