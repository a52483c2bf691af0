"""
Auth API package.

Contains the signup, login and email verification endpoints.
"""

from academy.api.auth.routes import router

__all__ = ["router"]
