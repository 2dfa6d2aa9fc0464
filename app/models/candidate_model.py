from pydantic import BaseModel, Field
from typing import Optional


class CandidateIn(BaseModel):
    name: str = Field(..., min_length=1, example="Nicusor Dan")
    party: str = Field(..., min_length=1, example="Independent")
    description: Optional[str] = None
    image: Optional[str] = None  # image URL


class Candidate(CandidateIn):
    id: int
