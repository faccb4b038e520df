#!/usr/bin/env python3
"""Pydantic models for synthetic 8vents demo data.

These models define the rows the generator writes and validate them before
they hit disk. Column names match the aliases `engagement.ingest` understands.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field


UserType = Literal["volunteer", "attendee"]

Language = Literal[
    "English",
    "Spanish",
    "Mandarin",
    "Cantonese",
    "Arabic",
    "Hindi",
    "Urdu",
    "French",
    "Portuguese",
    "Polish",
    "Russian",
    "Japanese",
    "Korean",
    "Vietnamese",
    "Tagalog",
    "Italian",
    "Greek",
    "German",
]


class SyntheticUser(BaseModel):
    """One volunteer or attendee. No real PII: names are fabricated."""

    user_id: str = Field(..., description="Unique identifier (shortuuid)")
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    user_type: UserType = "volunteer"
    languages: List[Language] = Field(default_factory=lambda: ["English"], min_length=1)

    def to_row(self) -> dict:
        row = self.model_dump()
        row["languages"] = ", ".join(self.languages)
        return row


class SyntheticEvent(BaseModel):
    event_id: str
    event_name: str = Field(..., min_length=1)
    event_date: str = Field(..., description="ISO date")
    location: str
    volunteers_needed: int = Field(default=5, ge=0)


class SyntheticParticipation(BaseModel):
    user_id: str
    event_id: str
    event_name: str
    event_date: str
    location: Optional[str] = None
    role: UserType = "volunteer"


class SyntheticDataset(BaseModel):
    """Everything one generator run produces."""
    users: List[SyntheticUser] = Field(default_factory=list)
    events: List[SyntheticEvent] = Field(default_factory=list)
    participation: List[SyntheticParticipation] = Field(default_factory=list)
