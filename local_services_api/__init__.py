"""
Top‑level package for the Local Services marketplace API.

All functionality lives in ``app`` (the FastAPI application) and
``cli`` (maintenance commands).
"""

__all__ = []
