from fastapi import APIRouter

from app import simulation
from app.models.election_model import ElectionResults, SimulationSummary

router = APIRouter(prefix="/api/election", tags=["Election"])


@router.post("/simulate", response_model=SimulationSummary)
async def simulate_election():
    summary = await simulation.simulate()
    return {"message": "Election simulated successfully.", **summary}


@router.get("/results", response_model=ElectionResults)
async def get_results():
    return await simulation.get_results()


@router.post("/reset")
async def reset_election():
    await simulation.reset()
    return {"message": "Election reset successfully."}
