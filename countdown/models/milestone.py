"""
Milestone model definitions.

A milestone is a titled deadline the user counts down to. Timestamps are
kept as ISO strings so that an unparsable value survives storage and is only
skipped when the timeline is derived.
"""

from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from countdown.models.enums import MilestoneIcon, MilestoneStatus
from countdown.utils.datetime_utils import now_utc, to_iso

FALLBACK_IMAGE_REF = "/images/placeholder.svg"
DEFAULT_TITLE = "New milestone"


def _created_now() -> str:
    return to_iso(now_utc())


class MilestoneBase(BaseModel):
    """Base milestone fields."""

    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(..., min_length=1, max_length=200, description="Milestone title")
    description: str = Field("", max_length=2000, description="Milestone description")
    location: Optional[str] = Field(None, max_length=500, description="Where it happens")
    target_time: str = Field(
        ...,
        validation_alias=AliasChoices("targetTime", "datetimeISO", "target_time"),
        serialization_alias="targetTime",
        description="Deadline as an ISO-8601 timestamp",
    )
    icon: MilestoneIcon = Field(MilestoneIcon.FLAG, description="Display icon tag")
    image_ref: str = Field(
        FALLBACK_IMAGE_REF,
        min_length=1,
        validation_alias=AliasChoices("imageRef", "imageUrl", "image_ref"),
        serialization_alias="imageRef",
    )
    status: MilestoneStatus = Field(MilestoneStatus.UPCOMING)
    created_at: str = Field(
        default_factory=_created_now,
        validation_alias=AliasChoices("createdAt", "created_at"),
        serialization_alias="createdAt",
        description="Start of the progress window",
    )

    def to_document(self) -> dict[str, Any]:
        """Wire representation (camelCase, enum values)."""
        return self.model_dump(mode="json", by_alias=True)


class MilestoneCreate(MilestoneBase):
    """Schema for creating a milestone. The store assigns the id."""

    pass


class MilestoneUpdate(BaseModel):
    """Schema for updating a milestone. Only fields that were set are written."""

    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    location: Optional[str] = Field(None, max_length=500)
    target_time: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("targetTime", "datetimeISO", "target_time"),
        serialization_alias="targetTime",
    )
    icon: Optional[MilestoneIcon] = None
    image_ref: Optional[str] = Field(
        None,
        min_length=1,
        validation_alias=AliasChoices("imageRef", "imageUrl", "image_ref"),
        serialization_alias="imageRef",
    )
    status: Optional[MilestoneStatus] = None
    created_at: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("createdAt", "created_at"),
        serialization_alias="createdAt",
    )

    def to_document(self) -> dict[str, Any]:
        """Wire representation of the fields that were explicitly set."""
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


class Milestone(MilestoneBase):
    """Complete milestone model."""

    id: str = Field(..., min_length=1, description="Opaque identifier, assigned at creation")
