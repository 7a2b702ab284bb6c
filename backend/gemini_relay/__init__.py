"""Gemini Relay: reverse proxy for the Gemini generateContent API."""
