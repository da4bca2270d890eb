"""
Web UI Module - FastAPI-based chat interface
============================================

This module provides the web side of Reihtuag:
- Chat page
- WebSocket chat channel
- Reply simulator and status endpoints
"""

from .app import create_app, run_app
from .routes import router

__all__ = [
    "create_app",
    "run_app",
    "router",
]
