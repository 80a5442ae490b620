from jobbot.services.learning import DEFAULT_KEYWORDS

from test_api import create_job, create_resume


def save_search_config(client, **overrides):
    data = {"keywords": ["python"], "locations": ["Remote"], "job_boards": ["Indeed", "RemoteOK"]}
    data.update(overrides)
    response = client.post("/api/job-search/config", json=data)
    assert response.status_code == 200
    return response.json()


# Job search

def test_search_config_upsert(client):
    assert client.get("/api/job-search/config").json() is None

    created = save_search_config(client)
    updated = save_search_config(client, keywords=["golang"], salary_min=90000)

    assert updated["id"] == created["id"]
    assert updated["keywords"] == ["golang"]
    assert client.get("/api/job-search/config").json()["salary_min"] == 90000


def test_manual_search_requires_config(client, scraper):
    response = client.post("/api/job-search/manual")

    assert response.status_code == 400
    assert scraper.calls == []


def test_manual_search_stores_new_jobs(client, scraper, settings):
    save_search_config(client)

    first = client.post("/api/job-search/manual").json()
    second = client.post("/api/job-search/manual").json()

    assert first["jobs_found"] == 2
    assert first["total_scraped"] == 2
    assert first["message"] == "Found 2 new jobs"
    assert {job["external_id"] for job in first["jobs"]} == {"globex-1", "initech-2"}
    assert second["jobs_found"] == 0
    assert scraper.calls[0]["limit"] == settings.manual_search_limit
    assert scraper.calls[0]["job_boards"] == ["Indeed", "RemoteOK"]
    assert len(client.get("/api/jobs").json()) == 2

    logs = client.get("/api/automation/logs").json()
    assert [log["action"] for log in logs] == ["manual_job_search", "manual_job_search"]


def test_scheduler_start_status_stop(client, scraper):
    save_search_config(client)

    started = client.post("/api/job-search/start-automation").json()
    assert started == {"message": "Automatic job search started", "status": "running"}
    assert client.get("/api/job-search/automation-status").json()["is_running"] is True
    assert client.get("/health").json()["automation_running"] is True

    # The first search runs straight away
    assert len(scraper.calls) == 1
    assert len(client.get("/api/jobs").json()) == 2

    stopped = client.post("/api/job-search/stop-automation").json()
    assert stopped["status"] == "stopped"
    status = client.get("/api/job-search/automation-status").json()
    assert status["is_running"] is False
    assert status["next_run_time"] is None


# Automation and system config

def test_automation_toggle_creates_config(client):
    assert client.post("/api/automation/toggle", json={"enabled": True}).json() == {"success": True, "enabled": True}
    assert client.get("/api/system/config").json()["automation_enabled"] is True

    assert client.post("/api/automation/toggle", json={"enabled": False}).json()["enabled"] is False

    logs = client.get("/api/automation/logs", params={"limit": 1}).json()
    assert len(logs) == 1
    assert logs[0]["action"] == "automation_toggle"
    assert logs[0]["details"] == {"enabled": False}


def test_system_config_masks_key_and_configures_llm(client, llm):
    assert client.get("/api/system/config").json() == {}

    saved = client.post("/api/system/config", json={
        "openai_api_key": "sk-test-abcdefghijklmnop",
        "daily_application_limit": 3,
    }).json()

    assert saved["openai_api_key"] == "sk-test-...mnop"
    assert saved["daily_application_limit"] == 3
    assert llm.openai_api_key == "sk-test-abcdefghijklmnop"

    # Fields left out of an update are kept
    updated = client.post("/api/system/config", json={"automation_enabled": True}).json()
    assert updated["openai_api_key"] == "sk-test-...mnop"
    assert updated["daily_application_limit"] == 3
    assert updated["automation_enabled"] is True


def test_system_config_validation(client):
    assert client.post("/api/system/config", json={"scrape_interval": 0}).status_code == 422


# AI

def test_job_matches(client):
    create_resume(client, skills=["Python", "Django", "Docker", "PostgreSQL"])
    create_job(client)
    create_job(client, title="Rust Developer", description="Rust", requirements=None, external_id="manual-2")

    matches = client.get("/api/ai/job-matches", params={"limit": 5}).json()

    assert [m["title"] for m in matches] == ["Python Developer", "Rust Developer"]
    assert matches[0]["score"] == 100
    assert matches[0]["method"] == "heuristic"


def test_analyze_job(client, llm):
    job = create_job(client)
    assert client.post(f"/api/ai/analyze-job/{job['id']}").status_code == 404

    create_resume(client)
    llm.queue('{"score": 72, "skills_match": ["Python"], "salary_match": true}')

    result = client.post(f"/api/ai/analyze-job/{job['id']}").json()

    assert result["score"] == 72
    assert result["method"] == "llm"
    assert result["skills_match"] == ["Python"]


def test_auto_apply(client, llm):
    job = create_job(client)
    assert client.post("/api/ai/auto-apply/missing").status_code == 404

    rejected = client.post(f"/api/ai/auto-apply/{job['id']}").json()
    assert rejected["success"] is False
    assert rejected["error"] == "No resume found"

    create_resume(client)
    llm.queue(
        '{"score": 91, "skills_match": ["Python", "Django", "Docker"], "salary_match": true}',
        "Dear Acme team, I am a great fit.",
    )
    applied = client.post(f"/api/ai/auto-apply/{job['id']}").json()

    assert applied["success"] is True
    assert applied["match_score"] == 91
    application = client.get("/api/applications").json()[0]
    assert application["id"] == applied["application_id"]
    assert application["cover_letter"] == "Dear Acme team, I am a great fit."


def test_learning_endpoints_without_history(client):
    insights = client.get("/api/ai/learning-insights").json()
    assert insights[0]["category"] == "Application Strategy"

    patterns = client.get("/api/ai/application-patterns").json()
    assert patterns["success_rate"] == 0

    assert client.get("/api/ai/search-keywords").json() == {"keywords": DEFAULT_KEYWORDS}

    strategy = client.get("/api/ai/automation-strategy").json()
    assert strategy["recommended_frequency"] == "6 hours"


# LLM status

def test_llm_status_and_setup_guide(client):
    status = client.get("/api/llm/status").json()

    assert status["active_provider"] == "fallback"
    assert status["openai"] is False
    assert "See /api/llm/setup-guide for setup instructions" in status["recommendations"]

    guide = client.get("/api/llm/setup-guide").json()
    assert set(guide) == {"ollama", "huggingface", "openai"}
