"""
API Routes Module

Exposes all route modules for registration in main app.
"""
from . import routes_passthrough
from . import routes_gemini
from . import routes_openai

__all__ = ["routes_gemini", "routes_openai", "routes_passthrough"]
