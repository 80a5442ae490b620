"""
Adaptive learning from application outcomes
"""

import logging
from typing import Any, Dict, List

from ..db.storage import Storage
from ..models.application import SUCCESS_STATUSES, ApplicationStatus
from ..models.match import ApplicationPattern, LearningInsight
from .llm import LLMService, LLMUnavailableError, parse_json_response

logger = logging.getLogger(__name__)

MIN_APPLICATIONS_FOR_PATTERNS = 5

DEFAULT_KEYWORDS = ['software engineer', 'developer', 'programmer']
FALLBACK_KEYWORDS = ['software engineer', 'full stack developer', 'backend developer', 'frontend developer']


class AdaptiveLearningService:
    """Turns application history into search and automation advice"""

    def __init__(self, storage: Storage, llm: LLMService):
        self.storage = storage
        self.llm = llm

    async def analyze_application_patterns(self, user_id: str) -> ApplicationPattern:
        """
        Compare successful and rejected applications

        Returns:
            Success rate with the factors the model found, or defaults
        """
        applications = self.storage.get_applications(user_id)
        if len(applications) < MIN_APPLICATIONS_FOR_PATTERNS:
            return ApplicationPattern(
                success_rate=0,
                recommended_improvements=['Apply to more positions to gather learning data'],
            )

        successful = [a for a in applications if a.status in SUCCESS_STATUSES]
        rejected = [a for a in applications if a.status == ApplicationStatus.rejected.value]
        success_rate = len(successful) / len(applications) * 100

        def describe(group) -> str:
            lines = []
            for application in group:
                job = self.storage.get_job(application.job_id)
                if job:
                    lines.append(f"- {job.title} at {job.company} ({job.location})")
            return "\n".join(lines)

        prompt = f"""Analyze these job application patterns to identify success factors and improvement areas.

SUCCESSFUL APPLICATIONS ({len(successful)}):
{describe(successful)}

REJECTED APPLICATIONS ({len(rejected)}):
{describe(rejected)}

SUCCESS RATE: {success_rate:.1f}%

Please analyze patterns and provide JSON response:
{{
  "common_success_factors": ["factor1", "factor2", ...],
  "rejection_reasons": ["reason1", "reason2", ...],
  "recommended_improvements": ["improvement1", "improvement2", ...]
}}"""

        try:
            text = await self.llm.generate_text(prompt, json_mode=True, static_fallback=False)
            analysis = parse_json_response(text)
            return ApplicationPattern(
                success_rate=success_rate,
                common_success_factors=[str(x) for x in analysis.get("common_success_factors") or []],
                rejection_reasons=[str(x) for x in analysis.get("rejection_reasons") or []],
                recommended_improvements=[str(x) for x in analysis.get("recommended_improvements") or []],
            )
        except (LLMUnavailableError, ValueError, TypeError) as e:
            logger.warning(f"Application pattern analysis fell back to defaults: {e}")
            return ApplicationPattern(
                success_rate=success_rate,
                common_success_factors=['Strong technical skills', 'Relevant experience'],
                rejection_reasons=['Skills mismatch', 'Experience level'],
                recommended_improvements=['Tailor applications more specifically', 'Improve resume keywords'],
            )

    async def generate_learning_insights(self, user_id: str) -> List[LearningInsight]:
        applications = self.storage.get_applications(user_id)
        logs = self.storage.get_automation_logs(user_id, 50)
        resumes = self.storage.get_resumes(user_id)

        def count(status: str) -> int:
            return sum(1 for a in applications if a.status == status)

        prompt = f"""Generate actionable insights to improve this user's job search success based on their data:

APPLICATIONS: {len(applications)} total
- Pending: {count('pending')}
- Interviews: {count('interview')}
- Rejected: {count('rejected')}
- Offers: {count('offer')}

AUTOMATION ACTIVITY: {len(logs)} recent actions
- Successful: {sum(1 for log in logs if log.status == 'success')}
- Failed: {sum(1 for log in logs if log.status == 'failed')}

RESUMES: {len(resumes)} versions available

Provide 3-5 specific, actionable insights in JSON format:
{{
  "insights": [
    {{
      "category": "category_name",
      "insight": "specific observation",
      "actionable": "concrete next step",
      "confidence": 0.85
    }}
  ]
}}"""

        try:
            text = await self.llm.generate_text(prompt, json_mode=True, static_fallback=False)
            result = parse_json_response(text)
            return [LearningInsight.model_validate(item) for item in result.get("insights") or []]
        except (LLMUnavailableError, ValueError, TypeError) as e:
            # pydantic's ValidationError is a ValueError
            logger.warning(f"Learning insights fell back to default: {e}")
            return [
                LearningInsight(
                    category="Application Strategy",
                    insight="Continue applying consistently to build data for better insights",
                    actionable="Maintain regular application schedule and track results",
                    confidence=0.7,
                )
            ]

    async def optimize_search_keywords(self, user_id: str) -> List[str]:
        successful = [a for a in self.storage.get_applications(user_id) if a.status in SUCCESS_STATUSES]
        if not successful:
            return list(DEFAULT_KEYWORDS)

        jobs = [job for job in (self.storage.get_job(a.job_id) for a in successful) if job]
        titles = ", ".join(job.title for job in jobs)
        descriptions = " ".join(job.description or "" for job in jobs)

        prompt = f"""Based on these successful job matches, suggest optimized search keywords:

SUCCESSFUL JOB TITLES: {titles}

JOB DESCRIPTIONS: {descriptions[:1000]}...

Return a JSON array of 5-10 optimized keywords that would find similar successful matches:
{{
  "keywords": ["keyword1", "keyword2", ...]
}}"""

        try:
            text = await self.llm.generate_text(prompt, json_mode=True, static_fallback=False)
            keywords = parse_json_response(text).get("keywords")
            if isinstance(keywords, list) and keywords:
                return [str(k) for k in keywords]
            return ['software engineer', 'developer']
        except (LLMUnavailableError, ValueError) as e:
            logger.warning(f"Keyword optimization fell back to defaults: {e}")
            return list(FALLBACK_KEYWORDS)

    async def adapt_automation_strategy(self, user_id: str) -> Dict[str, Any]:
        """Tune search frequency, filters and auto-apply settings to the success rate"""
        patterns = await self.analyze_application_patterns(user_id)
        rate = patterns.success_rate

        if rate > 20:
            frequency = "4 hours"
        elif 0 < rate < 5:
            frequency = "12 hours"
        else:
            frequency = "6 hours"

        return {
            "recommended_frequency": frequency,
            "suggested_filters": {
                "min_match_score": 70 if rate > 15 else 80,
                "focus_areas": patterns.common_success_factors,
                "avoid_keywords": patterns.rejection_reasons,
            },
            "automation_settings": {
                "enable_auto_apply": rate > 10,
                "max_daily_applications": 8 if rate > 20 else 5,
                "require_human_review": rate < 10,
            },
        }
