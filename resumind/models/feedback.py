"""Pydantic schema for the structured ATS feedback the model is asked to return.

The schema drives the format instructions sent to the model. Parsed feedback
is stored on the record as plain JSON, so a response with extra or missing
keys is still persisted as-is.
"""

from pydantic import BaseModel, Field
from typing import List, Literal, Optional


class Tip(BaseModel):
    type: Literal["good", "improve"]
    tip: str = Field(description="Short title of the tip")
    explanation: Optional[str] = Field(
        default=None,
        description="Detailed explanation (omitted for ATS tips)"
    )


class ATSTip(BaseModel):
    type: Literal["good", "improve"]
    tip: str


class CategoryScore(BaseModel):
    score: int = Field(ge=0, le=100, description="Score out of 100")
    tips: List[Tip] = Field(default_factory=list)


class ATSScore(BaseModel):
    score: int = Field(ge=0, le=100, description="Rate based on ATS suitability")
    tips: List[ATSTip] = Field(default_factory=list, description="3-4 tips")


class Feedback(BaseModel):
    """Top-level feedback object."""
    overallScore: int = Field(ge=0, le=100, description="Max 100")
    ATS: ATSScore
    toneAndStyle: CategoryScore
    content: CategoryScore
    structure: CategoryScore
    skills: CategoryScore
