"""
Web scraping service for job board listings
"""

import asyncio
import logging
import time
from typing import Awaitable, Dict, List, Optional
from urllib.parse import quote

import aiohttp
from bs4 import BeautifulSoup

from ..core.config import Settings, settings
from ..core.utils import clean_text
from ..models.job import JobCreate, ScrapedJob

logger = logging.getLogger(__name__)

BOARD_INDEED = "Indeed"
BOARD_LINKEDIN = "LinkedIn"
BOARD_REMOTEOK = "RemoteOK"
BOARD_STACKOVERFLOW = "Stack Overflow"

# Share of the overall limit each board may contribute
BOARD_QUOTAS = {
    BOARD_INDEED: 0.4,
    BOARD_REMOTEOK: 0.3,
    BOARD_LINKEDIN: 0.2,
    BOARD_STACKOVERFLOW: 0.1,
}

HEADERS = {
    'User-Agent': 'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36',
    'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8',
    'Accept-Language': 'en-US,en;q=0.5',
    'Accept-Encoding': 'gzip, deflate',
    'Connection': 'keep-alive',
}

REMOTEOK_URL = "https://remoteok.io/remote-dev-jobs"
STACKOVERFLOW_URL = "https://stackoverflow.com/jobs/remote-developer-jobs"


def _board_key(name: str) -> str:
    return name.replace(" ", "").lower()


def _fallback_id(prefix: str, index: int) -> str:
    return f"{prefix}-{int(time.time() * 1000)}-{index}"


def _text(element, selector: str) -> str:
    found = element.select_one(selector)
    return clean_text(found.get_text()) if found else ""


def _matches_keywords(title: str, tags: List[str], keywords: List[str]) -> bool:
    title = title.lower()
    tags = [tag.lower() for tag in tags]
    for keyword in keywords:
        keyword = keyword.lower()
        if keyword in title or any(keyword in tag for tag in tags):
            return True
    return False


def parse_indeed(html: str, limit: int) -> List[ScrapedJob]:
    """Job cards from an Indeed search result page"""
    soup = BeautifulSoup(html, 'lxml')
    jobs: List[ScrapedJob] = []

    for index, card in enumerate(soup.select('.jobsearch-SerpJobCard, [data-jk]')):
        if len(jobs) >= limit:
            break

        title = _text(card, '.jobTitle a span, h2 a span')
        company = _text(card, '.companyName, [data-testid="company-name"]')
        if not title or not company:
            continue

        inner_link = card.select_one('a[data-jk]')
        job_key = card.get('data-jk') or (inner_link.get('data-jk') if inner_link else None) \
            or _fallback_id('indeed', index)

        jobs.append(ScrapedJob(
            title=title,
            company=company,
            location=_text(card, '.companyLocation, [data-testid="job-location"]') or None,
            description=_text(card, '.job-snippet, [data-testid="job-snippet"]'),
            url=f"https://www.indeed.com/job/{job_key}",
            external_id=job_key,
            job_board=BOARD_INDEED,
        ))

    return jobs


def parse_linkedin(html: str, keyword: str, search_url: str, limit: int) -> List[ScrapedJob]:
    """Cards from LinkedIn's public job search page"""
    soup = BeautifulSoup(html, 'lxml')
    jobs: List[ScrapedJob] = []

    for index, card in enumerate(soup.select('.base-card')):
        if len(jobs) >= limit:
            break

        title = _text(card, '.base-search-card__title')
        company = _text(card, '.base-search-card__subtitle')
        if not title or not company:
            continue

        link = card.select_one('.base-card__full-link')
        job_url = (link.get('href') if link else None) or search_url
        job_id = job_url.rstrip('/').split('/')[-1] or _fallback_id('linkedin', index)

        jobs.append(ScrapedJob(
            title=title,
            company=company,
            location=_text(card, '.job-search-card__location') or None,
            description=_text(card, '.job-search-card__snippet') or f"{keyword} position at {company}",
            url=job_url,
            external_id=job_id,
            job_board=BOARD_LINKEDIN,
        ))

    return jobs


def parse_remoteok(html: str, keywords: List[str], limit: int) -> List[ScrapedJob]:
    """Remote listings whose title or tags mention a keyword"""
    soup = BeautifulSoup(html, 'lxml')
    jobs: List[ScrapedJob] = []

    for index, row in enumerate(soup.select('.job')):
        if len(jobs) >= limit:
            break

        title = _text(row, '.position')
        company = _text(row, '.company')
        tags = [clean_text(tag.get_text()) for tag in row.select('.tags .tag')]
        if not title or not company or not _matches_keywords(title, tags, keywords):
            continue

        job_id = row.get('data-id') or _fallback_id('remoteok', index)
        jobs.append(ScrapedJob(
            title=title,
            company=company,
            location="Remote",
            description=", ".join(tags),
            url=f"https://remoteok.io/remote-jobs/{job_id}",
            external_id=job_id,
            job_board=BOARD_REMOTEOK,
        ))

    return jobs


def parse_stackoverflow(html: str, keywords: List[str], limit: int) -> List[ScrapedJob]:
    """Stack Overflow remote developer listings that mention a keyword"""
    soup = BeautifulSoup(html, 'lxml')
    jobs: List[ScrapedJob] = []

    for index, row in enumerate(soup.select('.listResults .result')):
        if len(jobs) >= limit:
            break

        link = row.select_one('.job-link')
        title = clean_text(link.get_text()) if link else ""
        company = _text(row, '.fc-black-700')
        tags = [clean_text(tag.get_text()) for tag in row.select('.post-tag')]
        if not title or not company or not _matches_keywords(title, tags, keywords):
            continue

        jobs.append(ScrapedJob(
            title=title,
            company=company,
            location="Remote",
            description=f"Technologies: {', '.join(tags)}",
            url=f"https://stackoverflow.com{link.get('href') or ''}",
            external_id=_fallback_id('stackoverflow', index),
            job_board=BOARD_STACKOVERFLOW,
        ))

    return jobs


def dedupe_jobs(jobs: List[ScrapedJob]) -> List[ScrapedJob]:
    """Drop repeats of the same title at the same company, keeping the first"""
    seen = set()
    unique = []
    for job in jobs:
        key = (job.title.strip().lower(), job.company.strip().lower())
        if key in seen:
            continue
        seen.add(key)
        unique.append(job)
    return unique


def to_job_create(scraped: ScrapedJob) -> JobCreate:
    return JobCreate(
        title=scraped.title,
        company=scraped.company,
        location=scraped.location,
        description=scraped.description,
        requirements=scraped.requirements,
        salary=scraped.salary,
        job_board=scraped.job_board,
        external_id=scraped.external_id,
        url=scraped.url,
        is_active=True,
    )


class JobScraperService:
    """Scrapes job listings from public job boards"""

    def __init__(self, config: Settings = settings):
        self.config = config
        self.session: Optional[aiohttp.ClientSession] = None
        self.timeout = aiohttp.ClientTimeout(total=config.scrape_timeout)

    async def __aenter__(self):
        self.session = aiohttp.ClientSession(timeout=self.timeout)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self) -> None:
        if self.session and not self.session.closed:
            await self.session.close()

    async def get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session"""
        if not self.session or self.session.closed:
            self.session = aiohttp.ClientSession(timeout=self.timeout)
        return self.session

    async def fetch(self, url: str, headers: Optional[Dict[str, str]] = None) -> Optional[str]:
        """Page body, or None on a non-200 response"""
        session = await self.get_session()
        async with session.get(url, headers=headers or HEADERS) as response:
            if response.status != 200:
                logger.warning(f"Scraping {url} failed: HTTP {response.status}")
                return None
            return await response.text()

    async def _pause(self) -> None:
        if self.config.scrape_delay_seconds > 0:
            await asyncio.sleep(self.config.scrape_delay_seconds)

    async def scrape_indeed(self, keywords: List[str], locations: Optional[List[str]] = None, limit: int = 20) -> List[ScrapedJob]:
        jobs: List[ScrapedJob] = []
        location = locations[0] if locations else ""

        for keyword in keywords:
            if len(jobs) >= limit:
                break
            url = f"https://www.indeed.com/jobs?q={quote(keyword)}&l={quote(location)}&limit={limit}"
            logger.info(f"Scraping Indeed for: {keyword} in {location or 'any location'}")
            try:
                html = await self.fetch(url)
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                logger.error(f"Error scraping Indeed for {keyword}: {e}")
                continue
            if html:
                jobs.extend(parse_indeed(html, limit - len(jobs)))
            await self._pause()

        return jobs

    async def scrape_linkedin(self, keywords: List[str], locations: Optional[List[str]] = None, limit: int = 20) -> List[ScrapedJob]:
        jobs: List[ScrapedJob] = []
        location = locations[0] if locations else ""
        headers = {**HEADERS, 'Cache-Control': 'no-cache'}

        for keyword in keywords:
            if len(jobs) >= limit:
                break
            url = (
                f"https://www.linkedin.com/jobs/search?keywords={quote(keyword)}"
                f"&location={quote(location)}&f_TPR=r86400&f_JT=F&sortBy=DD"
            )
            logger.info(f"Scraping LinkedIn for: {keyword} in {location or 'any location'}")
            try:
                html = await self.fetch(url, headers=headers)
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                logger.error(f"Error scraping LinkedIn for {keyword}: {e}")
                continue
            if html:
                jobs.extend(parse_linkedin(html, keyword, url, limit - len(jobs)))
            await self._pause()

        return jobs

    async def scrape_remoteok(self, keywords: List[str], limit: int = 20) -> List[ScrapedJob]:
        logger.info("Scraping RemoteOK for development jobs")
        html = await self.fetch(REMOTEOK_URL)
        return parse_remoteok(html, keywords, limit) if html else []

    async def scrape_stackoverflow(self, keywords: List[str], limit: int = 20) -> List[ScrapedJob]:
        logger.info("Scraping Stack Overflow Jobs")
        html = await self.fetch(STACKOVERFLOW_URL)
        return parse_stackoverflow(html, keywords, limit) if html else []

    def _board_calls(self, boards: List[str], keywords: List[str], locations: List[str], limit: int) -> Dict[str, Awaitable[List[ScrapedJob]]]:
        quotas = {board: int(limit * share) for board, share in BOARD_QUOTAS.items()}
        scrapers = {
            BOARD_INDEED: lambda: self.scrape_indeed(keywords, locations, quotas[BOARD_INDEED]),
            BOARD_REMOTEOK: lambda: self.scrape_remoteok(keywords, quotas[BOARD_REMOTEOK]),
            BOARD_LINKEDIN: lambda: self.scrape_linkedin(keywords, locations, quotas[BOARD_LINKEDIN]),
            BOARD_STACKOVERFLOW: lambda: self.scrape_stackoverflow(keywords, quotas[BOARD_STACKOVERFLOW]),
        }
        return {board: scrapers[board]() for board in boards if quotas[board] > 0}

    async def scrape_all_job_boards(
        self,
        keywords: List[str],
        locations: Optional[List[str]] = None,
        limit: int = 50,
        job_boards: Optional[List[str]] = None,
    ) -> List[ScrapedJob]:
        """
        Scrape every board concurrently

        Args:
            keywords: Search terms
            locations: Preferred locations, the first one is used for searches
            limit: Maximum number of unique jobs returned
            job_boards: Only scrape these boards when given

        Returns:
            Unique jobs across boards, at most limit
        """
        logger.info(f"🔍 Starting comprehensive job search for: {', '.join(keywords)}")
        locations = locations or []

        wanted = {_board_key(b) for b in job_boards or []}
        boards = [b for b in BOARD_QUOTAS if not wanted or _board_key(b) in wanted]

        calls = self._board_calls(boards, keywords, locations, limit)
        results = await asyncio.gather(*calls.values(), return_exceptions=True)

        all_jobs: List[ScrapedJob] = []
        for board, result in zip(calls, results):
            if isinstance(result, BaseException):
                logger.warning(f"✗ {board} scraping failed: {result}")
                continue
            logger.info(f"✓ {board}: {len(result)} jobs")
            all_jobs.extend(result)

        unique_jobs = dedupe_jobs(all_jobs)[:limit]
        logger.info(f"✅ Job scraping completed: {len(unique_jobs)} unique jobs found")
        return unique_jobs
