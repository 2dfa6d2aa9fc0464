from fastapi import APIRouter
from fastapi.responses import JSONResponse

from app import crud
from app.models.vote_model import RegisteredVoter, Vote, Voter, VoterRegistration

vote_router = APIRouter(prefix="/api", tags=["Vote"])


# ------------------------------
# VOTER REGISTRATION
# ------------------------------
@vote_router.post("/register", response_model=RegisteredVoter)
async def register(registration: VoterRegistration):
    """
    Registers a voter by CNP. Registering an existing CNP is not an error:
    the stored voter is returned with existed=true.
    """
    voter, existed = await crud.register_voter(registration.cnp)
    body = RegisteredVoter(**voter, existed=existed).model_dump()
    return JSONResponse(status_code=200 if existed else 201, content=body)


@vote_router.get("/voters/{voter_id}", response_model=Voter)
async def get_voter(voter_id: int):
    return await crud.get_voter(voter_id)


# ------------------------------
# CAST VOTE
# ------------------------------
@vote_router.post("/vote")
async def cast_vote(vote: Vote):
    await crud.cast_vote(vote.voter_id, vote.candidate_id)
    return {"message": "Vote cast successfully."}
