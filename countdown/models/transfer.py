"""
Import/export document models.
"""

from pydantic import BaseModel, Field

from countdown.models.milestone import Milestone


class ExportDocument(BaseModel):
    """Portable backup: {"milestones": [...]}."""

    milestones: list[Milestone] = Field(default_factory=list)


class ImportResult(BaseModel):
    """Outcome of a successful import."""

    imported: int = Field(0, ge=0)
