"""
Small helpers shared by models and services
"""

import re
import uuid
from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


def clean_text(text: str) -> str:
    """Collapse whitespace runs into single spaces"""
    if not text:
        return ""
    return re.sub(r"\s+", " ", text).strip()
