#!/usr/bin/env python3
"""
JobBot AI - FastAPI Backend
Main application entry point
"""

import uvicorn

from jobbot.core.config import settings

if __name__ == "__main__":
    uvicorn.run(
        "jobbot.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level=settings.log_level.lower()
    )
