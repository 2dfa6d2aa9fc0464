from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class VoterRegistration(BaseModel):
    cnp: Optional[str] = None


class Voter(BaseModel):
    id: int
    cnp: str
    has_voted: bool = False


class RegisteredVoter(Voter):
    existed: bool


class Vote(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    voter_id: int = Field(..., alias="voterId")
    candidate_id: int = Field(..., alias="candidateId")
