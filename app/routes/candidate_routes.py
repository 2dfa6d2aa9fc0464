from fastapi import APIRouter, Response
from typing import List

from app import crud
from app.models.candidate_model import Candidate, CandidateIn

router = APIRouter(prefix="/api/candidates", tags=["Candidates"])


@router.get("", response_model=List[Candidate])
async def get_candidates():
    return await crud.list_candidates()


@router.get("/{candidate_id}", response_model=Candidate)
async def get_candidate(candidate_id: int):
    return await crud.get_candidate(candidate_id)


@router.post("", response_model=Candidate, status_code=201)
async def create_candidate(candidate: CandidateIn):
    return await crud.create_candidate(candidate)


@router.put("/{candidate_id}", response_model=Candidate)
async def update_candidate(candidate_id: int, candidate: CandidateIn):
    return await crud.update_candidate(candidate_id, candidate)


@router.delete("/{candidate_id}", status_code=204)
async def delete_candidate(candidate_id: int):
    await crud.delete_candidate(candidate_id)
    return Response(status_code=204)
