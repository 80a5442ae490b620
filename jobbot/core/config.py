"""
Configuration settings for the JobBot API
"""

from typing import List, Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings"""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # App Info
    app_name: str = "JobBot AI API"
    version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"

    # Database
    database_url: str = "sqlite:///./jobbot.db"

    # Single-user mode: every route acts on behalf of this user
    default_user_id: str = "demo-user-id"

    # CORS
    allowed_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:5000"]
    )

    # OpenAI
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o"
    openai_probe_model: str = "gpt-3.5-turbo"

    # Ollama
    ollama_base_url: str = "http://localhost:11434"
    ollama_model: str = "llama2"

    # Hugging Face
    huggingface_api_key: Optional[str] = None
    huggingface_base_url: str = "https://api-inference.huggingface.co/models"
    huggingface_model: str = "microsoft/DialoGPT-large"
    huggingface_alt_model: str = "mistralai/Mistral-7B-Instruct-v0.1"

    # LLM provider handling
    llm_timeout: int = 30
    llm_probe_ttl: int = 300

    # Scraping
    scrape_timeout: int = 30
    scrape_delay_seconds: float = 2.0
    manual_search_limit: int = 50
    scheduled_search_limit: int = 100
    search_interval_hours: float = 6.0

    # Resume uploads
    upload_dir: str = "uploads"
    max_upload_size: int = 5 * 1024 * 1024

    # Intelligent applications
    auto_apply_min_score: float = 75
    auto_apply_min_skills: int = 3
    auto_apply_batch_limit: int = 5
    auto_apply_delay_seconds: float = 2.0

    # Browser automation
    browser_headless: bool = True
    browser_timeout: int = 30
    browser_submit_enabled: bool = False

    # Applicant profile used to fill application forms
    applicant_first_name: Optional[str] = None
    applicant_last_name: Optional[str] = None
    applicant_email: Optional[str] = None
    applicant_phone: Optional[str] = None
    applicant_linkedin_url: Optional[str] = None
    applicant_portfolio_url: Optional[str] = None


# Global settings instance
settings = Settings()
