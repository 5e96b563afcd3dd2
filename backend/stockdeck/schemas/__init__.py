"""Pydantic schemas for API request/response validation.

This module exports all Pydantic schemas used throughout the application.
"""

from stockdeck.schemas.base import StrictBaseModel

__all__ = [
    "StrictBaseModel",
]
