#!/usr/bin/env python3
"""
Development server launcher for the PageLens API.

This script starts the FastAPI server with auto-reload for development.
For production, run uvicorn (or another ASGI server) against pagelens.api.main:app.
"""

import os
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

project_root = Path(__file__).parent
package_path = project_root / "pagelens"

if __name__ == "__main__":
    load_dotenv()
    port = int(os.environ.get("PORT", "3000"))

    print("Starting PageLens API Development Server")
    print(f"Server will be available at: http://localhost:{port}")
    print(f"API documentation at: http://localhost:{port}/docs")

    uvicorn.run(
        "pagelens.api.main:app",
        host="0.0.0.0",
        port=port,
        reload=True,     # development only
        reload_dirs=[str(package_path)],
        log_level=os.environ.get("LOG_LEVEL", "info").lower()
    )
