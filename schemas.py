"""
Schemas for the noise report service

The Report model mirrors a document in the MongoDB ``reports`` collection.
Field names are the JSON names clients see. ``createdAt`` is always epoch
milliseconds.
"""

from typing import Annotated, List, Optional

from pydantic import BaseModel, Field, field_validator

Score = Annotated[int, Field(strict=True, ge=1, le=5, description="Noise score, 5 is loudest")]


def _dedupe_labels(values: List[str]) -> List[str]:
    seen = []
    for value in values:
        label = value.strip()
        if label and label not in seen:
            seen.append(label)
    if not seen:
        raise ValueError("noiseTypes must contain at least one label")
    return seen


class Coordinates(BaseModel):
    lat: float
    lng: float


class Report(BaseModel):
    id: str = Field(..., description="Store-assigned identifier")
    submitterId: str = Field(..., description="Identity of the submitting user")
    address: str = Field(..., description="Canonical road address")
    score: int = Field(..., ge=1, le=5)
    noiseTypes: List[str] = Field(..., min_length=1)
    createdAt: int = Field(..., description="Server timestamp (epoch ms)")
    lat: Optional[float] = Field(None)
    lng: Optional[float] = Field(None)

    def public(self) -> dict:
        """Serialized form for responses seen by other users."""
        return self.model_dump(exclude={"submitterId"}, exclude_none=True)

    def owned(self) -> dict:
        return self.model_dump(exclude_none=True)


class ReportCreate(BaseModel):
    address: str = Field(..., min_length=1, description="Canonical road address")
    score: Score
    noiseTypes: List[str] = Field(..., min_length=1, description="Noise category labels")

    @field_validator("address")
    @classmethod
    def _address_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("address is required")
        return value

    @field_validator("noiseTypes")
    @classmethod
    def _labels(cls, value: List[str]) -> List[str]:
        return _dedupe_labels(value)


class ReportUpdate(BaseModel):
    score: Score
    noiseTypes: List[str] = Field(..., min_length=1)

    @field_validator("noiseTypes")
    @classmethod
    def _labels(cls, value: List[str]) -> List[str]:
        return _dedupe_labels(value)


class Eligibility(BaseModel):
    eligible: bool
    reason: Optional[str] = None


class AddressSummary(BaseModel):
    address: str
    averageScore: float
    reportCount: int


class Location(BaseModel):
    lat: float
    lng: float
    score: int


class SessionRequest(BaseModel):
    idToken: str = Field(..., min_length=1, description="ID token issued by the identity provider")
