"""Base Pydantic schemas with strict validation."""
from pydantic import BaseModel, ConfigDict


class StrictBaseModel(BaseModel):
    """Base model that forbids extra fields.

    All API request/response models should inherit from this class
    to ensure strict contract enforcement between frontend and backend.

    Usage:
        class DeckCreate(StrictBaseModel):
            name: str
    """

    model_config = ConfigDict(extra="forbid")
