"""
Job-Resume matching service using LLM analysis with a skill-overlap fallback
"""

import json
import logging
import re
from typing import Any, List, Optional

from ..db.storage import Storage
from ..models.job import Job
from ..models.match import JobMatchScore, JobMatchWithDetails
from ..models.resume import Resume
from .llm import LLMService, LLMUnavailableError, parse_json_response

logger = logging.getLogger(__name__)

COMMON_SKILLS = [
    # Languages
    'JavaScript', 'Python', 'TypeScript', 'Java', 'C++', 'HTML', 'CSS', 'SQL',

    # Frameworks
    'React', 'Node.js', 'Django', 'Flask', 'Express', 'Vue.js', 'Angular',
    'GraphQL', 'REST API',

    # Cloud & data stores
    'AWS', 'Docker', 'Kubernetes', 'Git', 'PostgreSQL', 'MongoDB', 'Redis',

    # Data & ML
    'Machine Learning', 'AI', 'Data Science', 'TensorFlow', 'PyTorch', 'Pandas',
]

RECENT_JOBS_WINDOW = 50


def extract_skills_from_text(text: str, vocabulary: Optional[List[str]] = None) -> List[str]:
    """Vocabulary skills mentioned in text, case-insensitive, on word boundaries"""
    text_lower = (text or "").lower()
    found = []
    for skill in vocabulary or COMMON_SKILLS:
        # \b does not work next to symbols like "+" or "."
        pattern = r'(?<!\w)' + re.escape(skill.lower()) + r'(?!\w)'
        if re.search(pattern, text_lower):
            found.append(skill)
    return found


def _as_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value]


class JobMatcherService:
    """Scores jobs against a user's resume"""

    def __init__(self, storage: Storage, llm: LLMService):
        self.storage = storage
        self.llm = llm

    async def analyze_job_match(self, job: Job, resume: Resume) -> JobMatchScore:
        """
        Ask the LLM how well a resume fits a job

        Falls back to basic_job_match when no model answers or the answer
        has no usable score.
        """
        prompt = f"""Analyze how well this resume matches this job posting. Provide a detailed scoring and analysis.

JOB POSTING:
Title: {job.title}
Company: {job.company}
Location: {job.location}
Description: {job.description}
Requirements: {job.requirements}
Salary: {job.salary}

RESUME:
Name: {resume.name}
Content: {resume.content}
Skills: {', '.join(resume.skills or [])}
Experience: {json.dumps(resume.experience)}

Please provide a JSON response with:
{{
  "score": number (0-100),
  "match_reasons": ["reason1", "reason2", ...],
  "skills_match": ["skill1", "skill2", ...],
  "missing_skills": ["skill1", "skill2", ...],
  "salary_match": boolean,
  "location_match": boolean,
  "recommendations": ["rec1", "rec2", ...]
}}"""

        try:
            text = await self.llm.generate_text(prompt, json_mode=True, static_fallback=False)
            analysis = parse_json_response(text)

            score = analysis.get("score")
            if isinstance(score, bool) or not isinstance(score, (int, float)):
                raise ValueError(f"Missing numeric score in match analysis: {score!r}")

            salary_match = analysis.get("salary_match")
            location_match = analysis.get("location_match")
            return JobMatchScore(
                job_id=job.id,
                score=max(0.0, min(100.0, float(score))),
                match_reasons=_as_list(analysis.get("match_reasons")),
                skills_match=_as_list(analysis.get("skills_match")),
                missing_skills=_as_list(analysis.get("missing_skills")),
                salary_match=salary_match if isinstance(salary_match, bool) else False,
                location_match=location_match if isinstance(location_match, bool) else True,
                recommendations=_as_list(analysis.get("recommendations")),
                method="llm",
            )
        except (LLMUnavailableError, ValueError) as e:
            logger.info(f"Match analysis for job {job.id} using basic matching: {e}")
            return self.basic_job_match(job, resume)

    def basic_job_match(self, job: Job, resume: Resume) -> JobMatchScore:
        """Skill-overlap score between a job posting and a resume"""
        job_skills = extract_skills_from_text(f"{job.description or ''} {job.requirements or ''}")
        resume_skills = resume.skills or extract_skills_from_text(resume.content)

        matching = [
            skill for skill in resume_skills
            if any(
                skill.lower() in job_skill.lower() or job_skill.lower() in skill.lower()
                for job_skill in job_skills
            )
        ]
        missing = [
            job_skill for job_skill in job_skills
            if not any(
                skill.lower() in job_skill.lower() or job_skill.lower() in skill.lower()
                for skill in matching
            )
        ]

        score = min(100.0, len(matching) / max(len(job_skills), 1) * 100)

        return JobMatchScore(
            job_id=job.id,
            score=score,
            match_reasons=[f"Found {len(matching)} matching skills"],
            skills_match=matching,
            missing_skills=missing,
            salary_match=True,
            location_match=True,
            recommendations=["Consider highlighting relevant experience", "Update skills section"],
            method="heuristic",
        )

    async def find_best_matches(self, user_id: str, limit: int = 10) -> List[JobMatchWithDetails]:
        """
        Score recent active jobs against the user's default resume

        Args:
            user_id: Resume owner
            limit: Number of matches to return

        Returns:
            Top matches sorted by score, empty when the user has no resume
        """
        resume = self.storage.get_default_resume(user_id)
        if not resume:
            return []

        matches = []
        for job in self.storage.get_jobs(RECENT_JOBS_WINDOW):
            if not job.is_active:
                continue
            match = await self.analyze_job_match(job, resume)
            matches.append(JobMatchWithDetails(
                **match.model_dump(),
                title=job.title,
                company=job.company,
                location=job.location,
                url=job.url,
            ))

        matches.sort(key=lambda m: m.score, reverse=True)
        return matches[:limit]

    async def auto_score_new_jobs(self, user_id: str, jobs: List[Job]) -> List[JobMatchScore]:
        resume = self.storage.get_default_resume(user_id)
        if not resume:
            return []

        scores = [await self.analyze_job_match(job, resume) for job in jobs]
        scores.sort(key=lambda s: s.score, reverse=True)
        return scores
