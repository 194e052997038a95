"""
FastAPI triage service.

Provides REST API for the matching engine:
- POST /llm - Chat/embedding proxy for credential-less callers
- POST /match/evidence, /match/ideas - Two-stage matching
- POST /route/owners - Owner routing
- POST /summarize - Summary of linked feedback
- GET /insights - Pipeline overview
- GET /health - Service health check
"""

from src.api.app import create_app

__all__ = ["create_app"]
