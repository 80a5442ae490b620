"""
Intelligent application service: decides when to apply, writes the cover
letter and hands the form to browser automation
"""

import asyncio
import json
import logging
from typing import Callable, List, Optional, Tuple

from fastapi.concurrency import run_in_threadpool

from ..core.config import Settings, settings
from ..db.storage import Storage
from ..models.application import (
    ApplicantInfo,
    ApplicationFormData,
    ApplicationStatus,
    CoverLetterCreate,
    JobApplication,
    JobApplicationCreate,
)
from ..models.job import Job
from ..models.match import AutoApplicationResult
from ..models.resume import Resume
from .browser import BrowserAutomationError, BrowserAutomationService
from .llm import LLMService, LLMUnavailableError
from .matcher import JobMatcherService

logger = logging.getLogger(__name__)


def applicant_from_settings(config: Settings) -> ApplicantInfo:
    return ApplicantInfo(
        first_name=config.applicant_first_name,
        last_name=config.applicant_last_name,
        email=config.applicant_email,
        phone=config.applicant_phone,
        linkedin_url=config.applicant_linkedin_url,
        portfolio_url=config.applicant_portfolio_url,
    )


class IntelligentApplicationService:
    """Applies to well-matched jobs on the user's behalf"""

    def __init__(
        self,
        storage: Storage,
        llm: LLMService,
        config: Settings = settings,
        browser_factory: Optional[Callable[[Settings], BrowserAutomationService]] = None,
    ):
        self.storage = storage
        self.llm = llm
        self.config = config
        self.browser_factory = browser_factory or BrowserAutomationService
        self.matcher = JobMatcherService(storage, llm)

    async def should_auto_apply(self, job: Job, user_id: str) -> Tuple[bool, str, float]:
        """
        Decide whether a job is worth an automatic application

        Returns:
            (should_apply, reason, match score)
        """
        try:
            resume = self.storage.get_default_resume(user_id)
            if not resume:
                return False, "No resume found", 0

            match = await self.matcher.analyze_job_match(job, resume)
        except Exception as e:
            logger.error(f"Error evaluating auto-apply criteria: {e}")
            return False, "Analysis failed", 0

        if (
            match.score >= self.config.auto_apply_min_score
            and len(match.skills_match) >= self.config.auto_apply_min_skills
            and match.salary_match
        ):
            return (
                True,
                f"High match score ({match.score:.0f}%) with {len(match.skills_match)} matching skills",
                match.score,
            )

        return False, f"Score too low ({match.score:.0f}%) or missing key requirements", match.score

    async def generate_optimized_cover_letter(self, job: Job, resume: Resume) -> str:
        prompt = f"""Generate a highly personalized cover letter for this job application.
Make it compelling, specific, and tailored to the company and role.

JOB DETAILS:
Company: {job.company}
Position: {job.title}
Location: {job.location}
Description: {job.description}
Requirements: {job.requirements}

CANDIDATE DETAILS:
Resume: {resume.content}
Skills: {', '.join(resume.skills or [])}
Experience: {json.dumps(resume.experience)}

INSTRUCTIONS:
- Keep it professional but engaging
- Highlight 2-3 most relevant experiences
- Show genuine interest in the company
- Mention specific skills that match the requirements
- Keep it under 300 words
- Don't use placeholder text or generic phrases
- Make it sound human and authentic"""

        try:
            cover_letter = await self.llm.generate_text(prompt, static_fallback=False)
            return cover_letter.strip()
        except LLMUnavailableError as e:
            logger.warning(f"Cover letter for {job.company} fell back to template: {e}")

        return f"""Dear {job.company} Hiring Team,

I am excited to apply for the {job.title} position. With my background in software development and expertise in the technologies mentioned in your job posting, I believe I would be a strong addition to your team.

My experience includes working with various programming languages and frameworks, and I am passionate about creating innovative solutions. I am particularly drawn to {job.company} because of your commitment to excellence and innovation.

I would welcome the opportunity to discuss how my skills and enthusiasm can contribute to your team's success.

Best regards,
[Your Name]"""

    async def attempt_auto_application(self, job: Job, user_id: str) -> AutoApplicationResult:
        """
        Evaluate a job and, when it qualifies, apply to it

        Args:
            job: Candidate job
            user_id: Applicant

        Returns:
            Outcome with the created application and cover letter ids
        """
        logger.info(f"🤖 Attempting auto-application for: {job.title} at {job.company}")

        try:
            should_apply, reason, score = await self.should_auto_apply(job, user_id)
            if not should_apply:
                return AutoApplicationResult(success=False, job_id=job.id, error=reason, match_score=score)

            logger.info(f"✅ Auto-apply approved: {reason}")
            resume = self.storage.get_default_resume(user_id)

            content = await self.generate_optimized_cover_letter(job, resume)
            cover_letter = self.storage.create_cover_letter(
                CoverLetterCreate(user_id=user_id, job_id=job.id, content=content, is_generated=True)
            )
            logger.info(f"📝 Generated cover letter for {job.company}")

            application = self.storage.create_application(JobApplicationCreate(
                user_id=user_id,
                job_id=job.id,
                resume_id=resume.id,
                cover_letter=content,
                status=ApplicationStatus.pending.value,
                notes=f"Auto-applied via AI system. Match score: {score:.0f}%",
            ))

            browser_result: Optional[dict] = None
            if job.url and "apply" in job.url:
                form_data = ApplicationFormData(
                    **applicant_from_settings(self.config).model_dump(),
                    cover_letter=content,
                    resume=resume.file_path or None,
                )
                browser = self.browser_factory(self.config)
                browser_result = await run_in_threadpool(browser.auto_submit, job.url, form_data)

                if browser_result.get("success"):
                    self.storage.update_application(application.id, {
                        "status": ApplicationStatus.submitted.value,
                        "notes": f"{application.notes} | Browser automation successful",
                    })
                    logger.info(f"🎯 Successfully auto-applied to {job.company}")
                elif browser_result.get("error"):
                    logger.warning(f"Browser automation failed for {job.company}: {browser_result['error']}")

            self.storage.log_action(
                user_id, "auto_application", "success",
                job_title=job.title,
                company=job.company,
                match_score=score,
                browser_automation=bool(browser_result and browser_result.get("success")),
                reason=reason,
            )

            return AutoApplicationResult(
                success=True,
                job_id=job.id,
                application_id=application.id,
                cover_letter_id=cover_letter.id,
                match_score=score,
            )

        except Exception as e:
            logger.error(f"❌ Auto-application failed for {job.company}: {e}")
            self.storage.session.rollback()
            self.storage.log_action(
                user_id, "auto_application", "failed",
                job_title=job.title, company=job.company, error=str(e),
            )
            return AutoApplicationResult(success=False, job_id=job.id, error=str(e), match_score=0)

    async def process_job_batch(
        self, user_id: str, jobs: List[Job], max_applications: Optional[int] = None
    ) -> List[AutoApplicationResult]:
        """Auto-apply across jobs until the limit of successful applications"""
        limit = self.config.auto_apply_batch_limit if max_applications is None else max_applications
        logger.info(f"🔄 Processing {len(jobs)} jobs for potential auto-applications")

        results = []
        applied = 0
        for job in jobs:
            if applied >= limit:
                logger.info(f"⏸️ Reached auto-application limit ({limit})")
                break

            if self.storage.has_applied(user_id, job.id):
                logger.info(f"⏭️ Already applied to {job.title} at {job.company}")
                continue

            result = await self.attempt_auto_application(job, user_id)
            results.append(result)

            if result.success:
                applied += 1
                if self.config.auto_apply_delay_seconds > 0:
                    await asyncio.sleep(self.config.auto_apply_delay_seconds)

        logger.info(f"🎯 Auto-application batch completed: {applied} applications submitted")
        return results

    async def apply_to_job(
        self,
        user_id: str,
        job: Job,
        resume: Resume,
        cover_letter: str = "",
        applicant: Optional[ApplicantInfo] = None,
    ) -> Tuple[JobApplication, Optional[str]]:
        """
        Create an application and fill the job's form in the browser

        Returns:
            (application, error message or None when automation worked)
        """
        application = self.storage.create_application(JobApplicationCreate(
            user_id=user_id,
            job_id=job.id,
            resume_id=resume.id,
            cover_letter=cover_letter,
            status=ApplicationStatus.pending.value,
        ))

        defaults = applicant_from_settings(self.config).model_dump()
        given = applicant.model_dump(exclude_none=True) if applicant else {}
        form_data = ApplicationFormData(
            **{**defaults, **given},
            cover_letter=cover_letter or None,
            resume=resume.file_path or None,
        )

        logger.info(f"Starting automated application for job: {job.title} at {job.company}")
        browser = self.browser_factory(self.config)
        try:
            if not await run_in_threadpool(browser.navigate_to_job_application, job.url):
                raise BrowserAutomationError("Failed to navigate to application page")
            if not await run_in_threadpool(browser.fill_application_form, form_data):
                raise BrowserAutomationError("Failed to fill application form")

            if self.config.browser_submit_enabled:
                if not await run_in_threadpool(browser.submit_application):
                    raise BrowserAutomationError("No submit button found")
                status = ApplicationStatus.submitted.value
                notes = "Application submitted via automation"
            else:
                status = ApplicationStatus.pending.value
                notes = "Form filled via automation; submission is disabled"

            application = self.storage.update_application(application.id, {"status": status, "notes": notes})
            self.storage.log_action(
                user_id, "automated_application", "success",
                job_title=job.title, company=job.company, application_status=status,
            )
            return application, None

        except BrowserAutomationError as e:
            logger.error(f"Automation failed: {e}")
            application = self.storage.update_application(application.id, {
                "status": ApplicationStatus.pending.value,
                "notes": f"Automation failed: {e}",
            })
            self.storage.log_action(
                user_id, "automated_application", "error",
                job_title=job.title, company=job.company, error=str(e),
            )
            return application, str(e)

        finally:
            await run_in_threadpool(browser.close_browser)
