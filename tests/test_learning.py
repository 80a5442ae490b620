import asyncio
import json

import pytest

from jobbot.models.application import JobApplicationCreate
from jobbot.services.learning import DEFAULT_KEYWORDS, AdaptiveLearningService


@pytest.fixture
def service(storage, llm):
    return AdaptiveLearningService(storage, llm)


@pytest.fixture
def add_applications(storage, make_job, make_resume, settings):
    def _add(*statuses):
        resume = make_resume()
        for status in statuses:
            storage.create_application(JobApplicationCreate(
                user_id=settings.default_user_id,
                job_id=make_job().id,
                resume_id=resume.id,
                status=status,
            ))
    return _add


def test_patterns_need_enough_history(service, add_applications, settings):
    add_applications("interview", "rejected")

    pattern = asyncio.run(service.analyze_application_patterns(settings.default_user_id))

    assert pattern.success_rate == 0
    assert pattern.recommended_improvements == ["Apply to more positions to gather learning data"]


def test_patterns_from_model(service, add_applications, llm, settings):
    add_applications("interview", "offer", "rejected", "rejected", "pending")
    llm.queue(json.dumps({
        "common_success_factors": ["Remote roles"],
        "rejection_reasons": ["Seniority"],
        "recommended_improvements": ["Target mid-level roles"],
    }))

    pattern = asyncio.run(service.analyze_application_patterns(settings.default_user_id))

    assert pattern.success_rate == 40
    assert pattern.common_success_factors == ["Remote roles"]
    assert pattern.rejection_reasons == ["Seniority"]
    assert "SUCCESS RATE: 40.0%" in llm.prompts[0]


def test_patterns_fall_back_without_provider(service, add_applications, settings):
    add_applications("rejected", "rejected", "rejected", "rejected", "interview")

    pattern = asyncio.run(service.analyze_application_patterns(settings.default_user_id))

    assert pattern.success_rate == 20
    assert pattern.common_success_factors == ["Strong technical skills", "Relevant experience"]


def test_learning_insights_from_model(service, llm, settings):
    llm.queue(json.dumps({"insights": [{
        "category": "Targeting",
        "insight": "Startups respond faster",
        "actionable": "Apply to more startups",
        "confidence": 0.8,
    }]}))

    insights = asyncio.run(service.generate_learning_insights(settings.default_user_id))

    assert len(insights) == 1
    assert insights[0].category == "Targeting"
    assert insights[0].confidence == 0.8


def test_learning_insights_reject_malformed_answer(service, llm, settings):
    llm.queue(json.dumps({"insights": [{"category": "Only a category"}]}))

    insights = asyncio.run(service.generate_learning_insights(settings.default_user_id))

    assert [i.category for i in insights] == ["Application Strategy"]


def test_keywords_default_without_successes(service, settings):
    assert asyncio.run(service.optimize_search_keywords(settings.default_user_id)) == DEFAULT_KEYWORDS


def test_keywords_from_successful_jobs(service, add_applications, llm, settings):
    add_applications("interview")
    llm.queue('{"keywords": ["django developer", "python backend"]}')

    keywords = asyncio.run(service.optimize_search_keywords(settings.default_user_id))

    assert keywords == ["django developer", "python backend"]
    assert "Python Developer" in llm.prompts[0]


def test_strategy_for_high_success_rate(service, add_applications, settings):
    add_applications("interview", "offer", "rejected", "rejected", "pending")

    strategy = asyncio.run(service.adapt_automation_strategy(settings.default_user_id))

    assert strategy["recommended_frequency"] == "4 hours"
    assert strategy["suggested_filters"]["min_match_score"] == 70
    assert strategy["automation_settings"] == {
        "enable_auto_apply": True,
        "max_daily_applications": 8,
        "require_human_review": False,
    }


def test_strategy_without_history(service, settings):
    strategy = asyncio.run(service.adapt_automation_strategy(settings.default_user_id))

    assert strategy["recommended_frequency"] == "6 hours"
    assert strategy["suggested_filters"]["min_match_score"] == 80
    assert strategy["automation_settings"]["enable_auto_apply"] is False
    assert strategy["automation_settings"]["require_human_review"] is True
