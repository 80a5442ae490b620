from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from jobbot.core.config import Settings
from jobbot.db.database import build_engine, create_db_and_tables
from jobbot.db.storage import Storage
from jobbot.main import create_app
from jobbot.models.job import JobCreate, ScrapedJob
from jobbot.models.resume import ResumeCreate
from jobbot.services.llm import LLMService


class FakeLLM(LLMService):
    """LLM service answering from a queue of scripted responses"""

    def __init__(self, config: Settings, responses: Optional[List[str]] = None):
        super().__init__(config)
        self.responses = list(responses or [])
        self.prompts: List[str] = []

    def queue(self, *responses: str) -> None:
        self.responses.extend(responses)

    async def get_available_providers(self) -> List[str]:
        return ["openai"] if self.responses else []

    def _generate_with(self, provider, prompt, json_mode, max_tokens, temperature) -> str:
        self.prompts.append(prompt)
        if not self.responses:
            raise RuntimeError("no scripted response left")
        return self.responses.pop(0)

    def _probe_openai(self):
        return False, None

    def _probe_ollama(self):
        return False, 0

    def _probe_huggingface(self) -> bool:
        return False


class FakeScraper:
    """Scraper factory and async context manager returning canned jobs"""

    def __init__(self, jobs: Optional[List[ScrapedJob]] = None, error: Optional[Exception] = None):
        self.jobs = list(jobs or [])
        self.error = error
        self.calls: List[Dict[str, Any]] = []
        self.closed = False

    def __call__(self, config: Settings) -> "FakeScraper":
        return self

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.closed = True

    async def scrape_all_job_boards(self, keywords, locations=None, limit=50, job_boards=None):
        self.calls.append({
            "keywords": keywords,
            "locations": locations,
            "limit": limit,
            "job_boards": job_boards,
        })
        if self.error:
            raise self.error
        return self.jobs[:limit]


class FakeBrowser:
    """Stands in for BrowserAutomationService"""

    def __init__(self, navigate_ok: bool = True, submit_ok: bool = True, auto_submit_result: Optional[dict] = None):
        self.navigate_ok = navigate_ok
        self.submit_ok = submit_ok
        self.auto_submit_result = auto_submit_result
        self.visited: List[str] = []
        self.form_data = None
        self.submitted = False
        self.closed = False

    def navigate_to_job_application(self, url: str) -> bool:
        self.visited.append(url)
        return self.navigate_ok

    def fill_application_form(self, form_data) -> bool:
        self.form_data = form_data
        return True

    def submit_application(self) -> bool:
        self.submitted = True
        return self.submit_ok

    def close_browser(self) -> None:
        self.closed = True

    def auto_submit(self, url: str, form_data) -> dict:
        self.visited.append(url)
        self.form_data = form_data
        self.closed = True
        return self.auto_submit_result or {"success": False, "submitted": False, "error": None}


class FakeElement:
    def __init__(self, text: str = "", displayed: bool = True, enabled: bool = True):
        self.text = text
        self.displayed = displayed
        self.enabled = enabled
        self.value = ""
        self.clicks = 0

    def is_displayed(self) -> bool:
        return self.displayed

    def is_enabled(self) -> bool:
        return self.enabled

    def click(self) -> None:
        self.clicks += 1

    def clear(self) -> None:
        self.value = ""

    def send_keys(self, value: str) -> None:
        self.value += value


class FakeDriver:
    """Minimal WebDriver: elements are looked up by their selector string"""

    def __init__(self, elements: Optional[Dict[str, List[FakeElement]]] = None, page_source: str = ""):
        self.elements = elements or {}
        self.page_source = page_source
        self.current_url = None
        self.quit_called = False

    def get(self, url: str) -> None:
        self.current_url = url

    def find_element(self, by, selector):
        return FakeElement()

    def find_elements(self, by, selector) -> List[FakeElement]:
        return self.elements.get(selector, [])

    def save_screenshot(self, path: str) -> bool:
        return True

    def quit(self) -> None:
        self.quit_called = True


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        database_url="sqlite://",
        default_user_id="test-user",
        openai_api_key=None,
        huggingface_api_key=None,
        scrape_delay_seconds=0,
        auto_apply_delay_seconds=0,
        upload_dir=str(tmp_path / "uploads"),
        max_upload_size=1024,
        applicant_first_name="Ada",
        applicant_last_name="Lovelace",
        applicant_email="ada@example.com",
    )


@pytest.fixture
def llm(settings) -> FakeLLM:
    return FakeLLM(settings)


@pytest.fixture
def engine():
    engine = build_engine("sqlite://")
    create_db_and_tables(engine)
    return engine


@pytest.fixture
def storage(engine):
    with Session(engine) as session:
        yield Storage(session)


@pytest.fixture
def make_job(storage):
    counter = {"n": 0}

    def _make_job(**overrides):
        counter["n"] += 1
        data = {
            "title": "Python Developer",
            "company": "Acme",
            "location": "Remote",
            "description": "Build APIs with Python, Django and PostgreSQL",
            "requirements": "Docker experience",
            "job_board": "Indeed",
            "external_id": f"job-{counter['n']}",
            "url": f"https://example.com/jobs/{counter['n']}",
        }
        data.update(overrides)
        return storage.create_job(JobCreate(**data))

    return _make_job


@pytest.fixture
def make_resume(storage, settings):
    def _make_resume(**overrides):
        data = {
            "user_id": settings.default_user_id,
            "name": "Main resume",
            "original_file_name": "resume.txt",
            "content": "Python developer with Django and Docker experience",
            "skills": ["Python", "Django"],
        }
        data.update(overrides)
        return storage.create_resume(ResumeCreate(**data))

    return _make_resume


@pytest.fixture
def scraper() -> FakeScraper:
    return FakeScraper([
        ScrapedJob(
            title="Backend Engineer",
            company="Globex",
            location="Remote",
            description="Python and AWS, salary $130k",
            url="https://example.com/apply/1",
            external_id="globex-1",
            job_board="RemoteOK",
        ),
        ScrapedJob(
            title="Frontend Engineer",
            company="Initech",
            location="Berlin",
            description="React and TypeScript",
            url="https://example.com/jobs/2",
            external_id="initech-2",
            job_board="Indeed",
        ),
    ])


@pytest.fixture
def browser() -> FakeBrowser:
    return FakeBrowser()


@pytest.fixture
def app(settings, llm, scraper, browser):
    return create_app(settings, llm=llm, scraper_factory=scraper, browser_factory=lambda config: browser)


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client


@pytest.fixture
def app_storage(app, client):
    """Storage on the app's own database, usable once the app has started"""
    with Session(app.state.engine) as session:
        yield Storage(session)
