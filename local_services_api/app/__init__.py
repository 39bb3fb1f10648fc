"""
Application package.

The code is organised by concern: ``core`` holds configuration,
database access, security and error handling; ``schemas`` the Pydantic
models; ``services`` the business logic; and ``api/v1`` the HTTP
endpoints.  ``main.create_app`` assembles them.
"""

from .main import create_app  # noqa: F401
