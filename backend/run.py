#!/usr/bin/env python3
# backend/run.py
"""
Development server runner for the directory search API.

Creates the tables on startup and reloads on code changes.
For local development only.
"""
import os
from pathlib import Path

import uvicorn

backend_dir = Path(__file__).parent
os.chdir(backend_dir)

if __name__ == "__main__":
    print("Starting directory search API at http://localhost:8000 (docs at /docs)")
    uvicorn.run(
        "directory_search.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        reload=True,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )
