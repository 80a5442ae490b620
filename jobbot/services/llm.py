"""
LLM service with provider fallback: OpenAI -> Ollama -> Hugging Face -> static text
"""

import json
import logging
import re
import time
from typing import Any, Dict, List, Optional, Tuple

import requests
from fastapi.concurrency import run_in_threadpool
from openai import OpenAI

from ..core.config import Settings, settings

logger = logging.getLogger(__name__)

PROVIDER_OPENAI = "openai"
PROVIDER_OLLAMA = "ollama"
PROVIDER_HUGGINGFACE = "huggingface"
PROVIDER_FALLBACK = "fallback"

# Probe order is also the generation order
PROVIDER_PRIORITY = (PROVIDER_OPENAI, PROVIDER_OLLAMA, PROVIDER_HUGGINGFACE)

SKILL_PATTERNS = [
    r"\b(javascript|js)\b", r"\breact\b", r"\bnode\.?js\b", r"\bpython\b",
    r"\bjava\b", r"(?<![\w+])c\+\+(?![\w+])", r"\bhtml\b", r"\bcss\b", r"\btypescript\b",
    r"\baws\b", r"\bdocker\b", r"\bkubernetes\b", r"\bsql\b", r"\bmongodb\b",
    r"\bpostgresql\b", r"\bgit\b", r"\blinux\b", r"\bangular\b", r"\bvue\b",
]

DEFAULT_SUGGESTIONS = [
    "Add quantifiable achievements with numbers and percentages",
    "Include relevant technical skills for your target industry",
    "Use action verbs to start bullet points",
    "Tailor resume content for each job application",
    "Add relevant certifications and courses",
]

SETUP_GUIDE = {
    "ollama": {
        "title": "Setup Ollama (Free Local AI)",
        "steps": [
            "Install Ollama from https://ollama.ai/download",
            "Run 'ollama serve' in terminal",
            "Install a model: 'ollama pull llama2'",
            "Restart JobBot - it will auto-detect Ollama",
        ],
        "difficulty": "Medium",
        "cost": "Free",
        "privacy": "Complete (runs locally)",
    },
    "huggingface": {
        "title": "Setup Hugging Face (Free API)",
        "steps": [
            "Sign up at https://huggingface.co",
            "Go to Settings > Access Tokens",
            "Create a new token",
            "Add HUGGINGFACE_API_KEY to your environment",
        ],
        "difficulty": "Easy",
        "cost": "Free (30k tokens/month)",
        "privacy": "Data sent to Hugging Face",
    },
    "openai": {
        "title": "Setup OpenAI (Best Quality)",
        "steps": [
            "Sign up at https://platform.openai.com",
            "Add payment method (required)",
            "Generate API key",
            "Add OPENAI_API_KEY to your environment",
        ],
        "difficulty": "Easy",
        "cost": "Pay per use (~$0.01 per resume)",
        "privacy": "Data sent to OpenAI",
    },
}


class LLMUnavailableError(Exception):
    """No provider produced an answer and static fallback was not allowed"""


def parse_json_response(text: str) -> Dict[str, Any]:
    """Parse a JSON object from model output, tolerating markdown code fences"""
    if not text or not text.strip():
        raise ValueError("Empty response from LLM")

    json_str = text.strip()
    if json_str.startswith("```json"):
        json_str = json_str[7:]
    if json_str.startswith("```"):
        json_str = json_str[3:]
    if json_str.endswith("```"):
        json_str = json_str[:-3]

    parsed = json.loads(json_str.strip())
    if not isinstance(parsed, dict):
        raise ValueError(f"Expected a JSON object, got {type(parsed).__name__}")
    return parsed


def extract_skills_fallback(content: str) -> List[str]:
    """Regex-based skill extraction used when no model is reachable"""
    skills = []
    for pattern in SKILL_PATTERNS:
        match = re.search(pattern, content, re.IGNORECASE)
        if match:
            skills.append(match.group(0))
    return skills or ["Programming", "Software Development"]


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(item).strip() for item in value if str(item).strip()]


def _clamp_score(value: Any, default: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    return max(0.0, min(100.0, float(value)))


def mask_secret(secret: Optional[str]) -> Optional[str]:
    if not secret:
        return secret
    if len(secret) <= 12:
        return "****"
    return f"{secret[:8]}...{secret[-4:]}"


class LLMService:
    """Text generation across whichever LLM providers are reachable"""

    def __init__(self, config: Settings = settings, openai_client: Optional[OpenAI] = None):
        self.config = config
        self.openai_api_key = config.openai_api_key
        self._openai_client = openai_client
        self._providers: Optional[List[str]] = None
        self._providers_checked_at = 0.0
        self.last_provider: Optional[str] = None

    def configure(self, openai_api_key: Optional[str] = None) -> None:
        """Switch the OpenAI key (e.g. from saved system config)"""
        if openai_api_key == self.openai_api_key:
            return
        self.openai_api_key = openai_api_key
        self._openai_client = None
        self.reset()

    def reset(self) -> None:
        """Forget cached provider availability"""
        self._providers = None
        self._providers_checked_at = 0.0

    @property
    def openai_client(self) -> Optional[OpenAI]:
        if self._openai_client is None and self.openai_api_key:
            self._openai_client = OpenAI(api_key=self.openai_api_key, timeout=self.config.llm_timeout)
        return self._openai_client

    # Provider probes

    def _probe_openai(self) -> Tuple[bool, Optional[str]]:
        client = self.openai_client
        if client is None:
            return False, None
        try:
            client.chat.completions.create(
                model=self.config.openai_probe_model,
                messages=[{"role": "user", "content": "test"}],
                max_tokens=1,
            )
            return True, None
        except Exception as e:
            logger.info(f"OpenAI not available: {e}")
            return False, str(e)

    def _probe_ollama(self) -> Tuple[bool, int]:
        try:
            response = requests.get(f"{self.config.ollama_base_url}/api/tags", timeout=3)
            if not response.ok:
                return False, 0
            models = response.json().get("models") or []
            return True, len(models)
        except (requests.RequestException, ValueError):
            logger.info("Ollama not available")
            return False, 0

    def _probe_huggingface(self) -> bool:
        if not self.config.huggingface_api_key:
            return False
        try:
            response = requests.post(
                f"{self.config.huggingface_base_url}/{self.config.huggingface_model}",
                headers=self._huggingface_headers(),
                json={"inputs": "test", "parameters": {"max_new_tokens": 1}},
                timeout=10,
            )
            # 503 means the model is still loading
            return response.status_code in (200, 503)
        except requests.RequestException as e:
            logger.info(f"Hugging Face check failed: {e}")
            return False

    def _detect_providers(self) -> List[str]:
        providers = []
        if self._probe_openai()[0]:
            providers.append(PROVIDER_OPENAI)
        if self._probe_ollama()[0]:
            providers.append(PROVIDER_OLLAMA)
        if self.config.huggingface_api_key:
            providers.append(PROVIDER_HUGGINGFACE)
        return providers

    async def get_available_providers(self) -> List[str]:
        """Reachable providers in priority order, cached for llm_probe_ttl seconds"""
        now = time.monotonic()
        if self._providers is not None and now - self._providers_checked_at < self.config.llm_probe_ttl:
            return self._providers

        self._providers = await run_in_threadpool(self._detect_providers)
        self._providers_checked_at = now
        logger.info(f"🤖 Available LLM providers: {self._providers or ['fallback']}")
        return self._providers

    async def get_active_provider(self) -> str:
        providers = await self.get_available_providers()
        return providers[0] if providers else PROVIDER_FALLBACK

    # Generation

    async def generate_text(
        self,
        prompt: str,
        json_mode: bool = False,
        max_tokens: int = 1000,
        temperature: float = 0.7,
        static_fallback: bool = True,
    ) -> str:
        """
        Generate text with the first provider that answers

        Args:
            prompt: User prompt
            json_mode: Ask the provider for a JSON object
            max_tokens: Generation budget
            temperature: Sampling temperature
            static_fallback: Return canned text instead of raising when every provider fails

        Returns:
            Generated text
        """
        for provider in await self.get_available_providers():
            try:
                text = await run_in_threadpool(
                    self._generate_with, provider, prompt, json_mode, max_tokens, temperature
                )
            except Exception as e:
                logger.warning(f"⚠️ {provider} generation failed, trying next provider: {e}")
                continue

            if text and text.strip():
                self.last_provider = provider
                return text
            logger.warning(f"⚠️ {provider} returned an empty response")

        if static_fallback:
            logger.info("No LLM provider answered - using static fallback response")
            self.last_provider = PROVIDER_FALLBACK
            return self.fallback_response(prompt)

        raise LLMUnavailableError("No LLM provider available")

    def _generate_with(self, provider: str, prompt: str, json_mode: bool, max_tokens: int, temperature: float) -> str:
        if provider == PROVIDER_OPENAI:
            return self._generate_with_openai(prompt, json_mode, max_tokens, temperature)
        if provider == PROVIDER_OLLAMA:
            return self._generate_with_ollama(prompt, max_tokens, temperature)
        if provider == PROVIDER_HUGGINGFACE:
            return self._generate_with_huggingface(prompt, max_tokens, temperature)
        raise ValueError(f"Unknown LLM provider: {provider}")

    def _generate_with_openai(self, prompt: str, json_mode: bool, max_tokens: int, temperature: float) -> str:
        client = self.openai_client
        if client is None:
            raise LLMUnavailableError("OpenAI API key not configured")

        kwargs: Dict[str, Any] = {}
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        response = client.chat.completions.create(
            model=self.config.openai_model,
            messages=[{"role": "user", "content": prompt}],
            temperature=temperature,
            max_tokens=max_tokens,
            **kwargs,
        )
        return response.choices[0].message.content or ""

    def _generate_with_ollama(self, prompt: str, max_tokens: int, temperature: float) -> str:
        response = requests.post(
            f"{self.config.ollama_base_url}/api/generate",
            json={
                "model": self.config.ollama_model,
                "prompt": prompt,
                "stream": False,
                "options": {"num_predict": max_tokens, "temperature": temperature},
            },
            timeout=self.config.llm_timeout,
        )
        response.raise_for_status()
        return response.json().get("response") or ""

    def _huggingface_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.config.huggingface_api_key}",
            "Content-Type": "application/json",
        }

    def _call_huggingface(self, model: str, prompt: str, max_new_tokens: int, temperature: float) -> Optional[str]:
        try:
            response = requests.post(
                f"{self.config.huggingface_base_url}/{model}",
                headers=self._huggingface_headers(),
                json={
                    "inputs": prompt,
                    "parameters": {
                        "max_new_tokens": max_new_tokens,
                        "temperature": temperature,
                        "return_full_text": False,
                    },
                },
                timeout=self.config.llm_timeout,
            )
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"Hugging Face model {model} failed: {e}")
            return None

        if isinstance(data, list) and data and isinstance(data[0], dict):
            return data[0].get("generated_text") or None
        return None

    def _generate_with_huggingface(self, prompt: str, max_tokens: int, temperature: float) -> str:
        text = self._call_huggingface(self.config.huggingface_model, prompt, max_tokens, temperature)
        if text:
            return text

        # Free tier caps generation length on the alternate model
        text = self._call_huggingface(
            self.config.huggingface_alt_model, prompt, min(max_tokens, 500), temperature
        )
        if text:
            return text
        raise RuntimeError("All Hugging Face models failed")

    @staticmethod
    def fallback_response(prompt: str) -> str:
        """Canned answer picked from the prompt's subject"""
        lowered = prompt.lower()

        if "skill" in lowered:
            return json.dumps({
                "skills": ["JavaScript", "React", "Node.js", "Python", "SQL", "Git", "HTML", "CSS"]
            })

        if "ats" in lowered:
            return json.dumps({
                "score": 75,
                "issues": ["Consider using standard section headings", "Add more keywords"],
                "recommendations": ["Use bullet points for achievements", "Include relevant technical skills"],
            })

        if "keyword" in lowered:
            return json.dumps({
                "matched_keywords": ["JavaScript", "React", "Frontend"],
                "missing_keywords": ["TypeScript", "Testing", "AWS"],
                "match_score": 65,
                "suggestions": ["Add missing technical skills", "Include cloud platform experience"],
            })

        if "cover letter" in lowered:
            return json.dumps({
                "content": (
                    "Dear Hiring Manager,\n\nI am excited to apply for this position. My technical "
                    "background and passion for software development make me a strong candidate.\n\n"
                    "I look forward to discussing how I can contribute to your team.\n\nBest regards"
                ),
                "tone": "professional",
                "key_points": ["Technical skills alignment", "Enthusiasm for role", "Team contribution"],
            })

        return (
            "I apologize, but I'm currently unable to process this request. Please try again later "
            "or consider setting up a local LLM with Ollama."
        )

    async def _ask_json(self, prompt: str, max_tokens: int = 1000, temperature: float = 0.7) -> Dict[str, Any]:
        text = await self.generate_text(
            prompt, json_mode=True, max_tokens=max_tokens, temperature=temperature, static_fallback=False
        )
        return parse_json_response(text)

    # Features

    async def extract_resume_skills(self, resume_content: str) -> List[str]:
        """Skills, languages, frameworks and tools mentioned in a resume"""
        prompt = f"""Extract all technical skills, programming languages, frameworks, tools, and relevant professional skills from this resume. Return a JSON object with a "skills" array.

Resume: {resume_content}

Return format: {{"skills": ["skill1", "skill2", ...]}}"""

        try:
            parsed = await self._ask_json(prompt, max_tokens=500, temperature=0.3)
            if isinstance(parsed.get("skills"), list):
                return _string_list(parsed["skills"])
        except (LLMUnavailableError, ValueError) as e:
            logger.warning(f"Skill extraction fell back to patterns: {e}")
        return extract_skills_fallback(resume_content)

    async def check_ats_compatibility(self, resume_content: str) -> Dict[str, Any]:
        prompt = f"""Analyze this resume for ATS (Applicant Tracking System) compatibility. Return JSON with: score (0-100), issues array, recommendations array.

Resume: {resume_content}

Focus on: standard headings, readable formatting, keyword usage, file format compatibility."""

        try:
            parsed = await self._ask_json(prompt, max_tokens=600)
            return {
                "score": _clamp_score(parsed.get("score"), 75),
                "issues": _string_list(parsed.get("issues")),
                "recommendations": _string_list(parsed.get("recommendations")),
            }
        except (LLMUnavailableError, ValueError) as e:
            logger.warning(f"ATS analysis unavailable: {e}")
            return {
                "score": 75,
                "issues": ["Unable to analyze ATS compatibility with current setup"],
                "recommendations": [
                    "Use standard section headings (Experience, Education, Skills)",
                    "Avoid complex formatting and graphics",
                    "Include relevant keywords from job descriptions",
                    "Save in PDF or DOCX format",
                ],
            }

    async def perform_keyword_analysis(self, resume_content: str, job_description: str) -> Dict[str, Any]:
        prompt = f"""Compare this resume against the job description for keyword matching. Return JSON with: matched_keywords, missing_keywords, match_score (0-100), suggestions.

Job Description: {job_description}

Resume: {resume_content}"""

        try:
            parsed = await self._ask_json(prompt, max_tokens=700)
            return {
                "matched_keywords": _string_list(parsed.get("matched_keywords")),
                "missing_keywords": _string_list(parsed.get("missing_keywords")),
                "match_score": _clamp_score(parsed.get("match_score"), 50),
                "suggestions": _string_list(parsed.get("suggestions")),
            }
        except (LLMUnavailableError, ValueError) as e:
            logger.warning(f"Keyword analysis unavailable: {e}")
            return {
                "matched_keywords": ["Programming", "Software Development"],
                "missing_keywords": ["Analysis unavailable"],
                "match_score": 50,
                "suggestions": ["Set up local LLM or API key for detailed analysis"],
            }

    async def get_resume_optimization_suggestions(self, resume_content: str) -> List[str]:
        prompt = f"""Analyze this resume and provide 5-7 specific improvement suggestions. Return JSON with suggestions array.

Resume: {resume_content}"""

        try:
            parsed = await self._ask_json(prompt, max_tokens=500)
            suggestions = _string_list(parsed.get("suggestions"))
            if suggestions:
                return suggestions
        except (LLMUnavailableError, ValueError) as e:
            logger.warning(f"Optimization suggestions unavailable: {e}")
        return list(DEFAULT_SUGGESTIONS)

    async def generate_cover_letter(
        self,
        job_title: str,
        company_name: str,
        applicant_name: str,
        requirements: Optional[str] = None,
        resume_content: Optional[str] = None,
        job_description: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Write a cover letter for a job

        Returns:
            Dictionary with content, tone and key_points
        """
        prompt = f"""Generate a professional cover letter for: {job_title} at {company_name}.

Requirements: {requirements or 'Not specified'}
Applicant: {applicant_name}"""
        if job_description:
            prompt += f"\n\nJob Description:\n{job_description}"
        if resume_content:
            prompt += f"\n\nApplicant Resume:\n{resume_content}"
        prompt += "\n\nReturn JSON with: content, tone, key_points array."

        try:
            parsed = await self._ask_json(prompt, max_tokens=800, temperature=0.8)
            content = parsed.get("content")
            return {
                "content": content if isinstance(content, str) and content.strip()
                else self.default_cover_letter(job_title, company_name, applicant_name),
                "tone": parsed.get("tone") or "professional",
                "key_points": _string_list(parsed.get("key_points"))
                or ["Technical skills", "Experience match", "Company interest"],
            }
        except (LLMUnavailableError, ValueError) as e:
            logger.warning(f"Cover letter generation fell back to template: {e}")
            return {
                "content": self.default_cover_letter(job_title, company_name, applicant_name),
                "tone": "professional",
                "key_points": ["Technical background", "Role enthusiasm", "Team contribution"],
            }

    @staticmethod
    def default_cover_letter(job_title: str, company_name: str, applicant_name: str) -> str:
        return f"""Dear Hiring Manager,

I am writing to express my strong interest in the {job_title} position at {company_name}.

My technical background and experience in software development align well with your requirements. I am excited about the opportunity to contribute to your team and help drive innovative solutions.

I would welcome the chance to discuss how my skills and enthusiasm can benefit your organization.

Best regards,
{applicant_name}"""

    async def optimize_resume(self, resume_content: str, job_description: str, job_title: str) -> Dict[str, Any]:
        """Rewrite a resume towards a job posting, keeping it truthful"""
        prompt = f"""You are a professional resume optimization expert. Analyze the provided resume and job description, then optimize the resume to better match the job requirements while maintaining authenticity.

Job Title: {job_title}

Job Description:
{job_description}

Current Resume:
{resume_content}

Return JSON with: optimized_content (the improved resume text), suggestions (array of improvement suggestions), and match_score (percentage match from 0-100)."""

        try:
            parsed = await self._ask_json(prompt, max_tokens=2000)
            optimized = parsed.get("optimized_content")
            return {
                "optimized_content": optimized if isinstance(optimized, str) and optimized.strip() else resume_content,
                "suggestions": _string_list(parsed.get("suggestions")),
                "match_score": _clamp_score(parsed.get("match_score"), 0),
            }
        except (LLMUnavailableError, ValueError) as e:
            logger.warning(f"Resume optimization unavailable: {e}")
            return {
                "optimized_content": resume_content,
                "suggestions": list(DEFAULT_SUGGESTIONS),
                "match_score": 0,
            }

    async def analyze_job_description(self, job_description: str) -> Dict[str, Any]:
        prompt = f"""Analyze the job description and extract key information. Return a JSON object with: required_skills (array of must-have skills), preferred_skills (array of nice-to-have skills), experience_level (entry/mid/senior), and key_requirements (array of main job requirements).

Job Description:
{job_description}"""

        try:
            parsed = await self._ask_json(prompt, max_tokens=700, temperature=0.3)
            level = parsed.get("experience_level")
            return {
                "required_skills": _string_list(parsed.get("required_skills")),
                "preferred_skills": _string_list(parsed.get("preferred_skills")),
                "experience_level": level if level in ("entry", "mid", "senior") else "mid",
                "key_requirements": _string_list(parsed.get("key_requirements")),
            }
        except (LLMUnavailableError, ValueError) as e:
            logger.warning(f"Job description analysis unavailable: {e}")
            return {
                "required_skills": [],
                "preferred_skills": [],
                "experience_level": "mid",
                "key_requirements": [],
            }

    # Status

    async def provider_status(self) -> Dict[str, Any]:
        """Probe every provider and explain how to get AI features working"""
        status: Dict[str, Any] = {
            "openai": False,
            "ollama": False,
            "huggingface": False,
            "active_provider": "none",
            "recommendations": [],
        }
        recommendations: List[str] = status["recommendations"]

        if self.openai_api_key:
            ok, error = await run_in_threadpool(self._probe_openai)
            if ok:
                status["openai"] = True
                status["active_provider"] = PROVIDER_OPENAI
            elif error and "quota" in error.lower():
                recommendations.append("OpenAI quota exceeded - consider Ollama or Hugging Face")
            elif error and ("api_key" in error.lower() or "api key" in error.lower()):
                recommendations.append("Invalid OpenAI API key - check your configuration")
        else:
            recommendations.append("No OpenAI API key found - add OPENAI_API_KEY to use GPT models")

        ollama_ok, model_count = await run_in_threadpool(self._probe_ollama)
        if ollama_ok:
            status["ollama"] = True
            if not status["openai"]:
                status["active_provider"] = PROVIDER_OLLAMA
            if model_count:
                recommendations.append(f"Ollama running with {model_count} models available")
            else:
                recommendations.append(
                    f"Ollama running but no models installed - run 'ollama pull {self.config.ollama_model}'"
                )
        else:
            recommendations.append("Ollama not running - install and run 'ollama serve' for free local AI")

        if self.config.huggingface_api_key:
            if await run_in_threadpool(self._probe_huggingface):
                status["huggingface"] = True
                if not status["openai"] and not status["ollama"]:
                    status["active_provider"] = PROVIDER_HUGGINGFACE
        elif not status["openai"] and not status["ollama"]:
            recommendations.append("Add HUGGINGFACE_API_KEY for free AI with monthly limits")

        if not (status["openai"] or status["ollama"] or status["huggingface"]):
            status["active_provider"] = PROVIDER_FALLBACK
            recommendations.append("No AI providers available - using basic fallback responses")
            recommendations.append("See /api/llm/setup-guide for setup instructions")
        else:
            recommendations.insert(0, f"✅ AI features working with {status['active_provider']}")

        return status

    @staticmethod
    def setup_guide() -> Dict[str, Any]:
        return SETUP_GUIDE
