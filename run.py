#!/usr/bin/env python3
"""Run script for taskengine."""

import uvicorn

from taskengine.config import settings

if __name__ == "__main__":
    uvicorn.run(
        "taskengine.api.app:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
    )
