"""
CORS middleware configuration.
Origins come from settings.cors_origins (citybasic.com + localhost:3000 in dev). No wildcards,
since the session travels in cookies.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from citybasic.config import settings


def setup_cors(app: FastAPI) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID", "Accept-Language"],
        max_age=600,
    )
