from pydantic import BaseModel, Field
from typing import List


class ElectionResult(BaseModel):
    id: int
    round_number: int = Field(..., ge=1, le=2)
    candidate_id: int
    candidate_name: str
    vote_count: int


class ElectionResults(BaseModel):
    round1: List[ElectionResult] = []
    round2: List[ElectionResult] = []


class SimulationSummary(BaseModel):
    message: str
    round: int
    voters: int
    results: List[ElectionResult]
