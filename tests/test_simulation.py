import asyncio
import random

import pytest
from pymongo.errors import PyMongoError

from app import crud, simulation
from app.errors import SimulationError
from app.models.candidate_model import CandidateIn


async def all_cnps(mongo):
    return [voter["cnp"] async for voter in mongo["voters"].find({})]


def seed_candidates(*names):
    async def _seed():
        for name in names:
            await crud.create_candidate(CandidateIn(name=name, party="Demo"))
    asyncio.run(_seed())


def test_generate_cnps_discards_collisions():
    class RepeatingRandom(random.Random):
        # Hands out every value twice to force collisions
        def __init__(self):
            super().__init__(7)
            self._last = None

        def randint(self, a, b):
            if self._last is None:
                self._last = super().randint(a, b)
                return self._last
            value, self._last = self._last, None
            return value

    cnps = simulation.generate_cnps(100, RepeatingRandom())
    assert len(cnps) == 100
    assert len(set(cnps)) == 100
    assert all(len(c) == 13 and c.isdigit() for c in cnps)


def test_generate_cnps_skips_taken():
    rng = random.Random(1)
    first = simulation.generate_cnps(50, rng)
    second = simulation.generate_cnps(50, rng, taken=set(first))
    assert not set(first) & set(second)


def test_simulate_round_one(mongo):
    seed_candidates("Alice", "Bob", "Carol")

    summary = asyncio.run(simulation.simulate(rng=random.Random(42)))

    assert summary["round"] == 1
    assert summary["voters"] == 100
    assert sum(r["vote_count"] for r in summary["results"]) == 100

    voters = asyncio.run(mongo["voters"].count_documents({}))
    voted = asyncio.run(mongo["voters"].count_documents({"has_voted": True}))
    votes = asyncio.run(mongo["votes"].count_documents({}))
    assert voters == voted == votes == 100
    cnps = asyncio.run(all_cnps(mongo))
    assert len(set(cnps)) == 100

    results = asyncio.run(simulation.get_results())
    assert results["round2"] == []
    counts = [r["vote_count"] for r in results["round1"]]
    assert sum(counts) == 100
    assert counts == sorted(counts, reverse=True)
    names = {"Alice", "Bob", "Carol"}
    assert {r["candidate_name"] for r in results["round1"]} <= names
    assert all(r["round_number"] == 1 for r in results["round1"])


def test_simulate_replaces_previous_run(mongo):
    seed_candidates("Alice", "Bob")
    asyncio.run(simulation.simulate(rng=random.Random(1)))
    asyncio.run(simulation.simulate(rng=random.Random(2)))

    results = asyncio.run(simulation.get_results())
    assert sum(r["vote_count"] for r in results["round1"]) == 100
    assert asyncio.run(mongo["voters"].count_documents({})) == 100


def test_result_names_are_captured_at_tally_time(mongo):
    seed_candidates("Alice")
    asyncio.run(simulation.simulate(rng=random.Random(3)))
    asyncio.run(crud.update_candidate(1, CandidateIn(name="Alice Renamed", party="Demo")))

    results = asyncio.run(simulation.get_results())
    assert results["round1"][0]["candidate_name"] == "Alice"
    assert results["round1"][0]["vote_count"] == 100


def test_simulate_without_candidates_fails_fast(mongo):
    with pytest.raises(SimulationError) as excinfo:
        asyncio.run(simulation.simulate())
    assert excinfo.value.stage == "load candidates"
    assert asyncio.run(mongo["voters"].count_documents({})) == 0


def test_failed_simulation_leaves_no_partial_state(mongo, monkeypatch):
    seed_candidates("Alice", "Bob")

    async def broken_tally(round_number, voter_ids):
        raise PyMongoError("aggregate failed")

    monkeypatch.setattr(simulation, "tally", broken_tally)
    with pytest.raises(SimulationError) as excinfo:
        asyncio.run(simulation.simulate(rng=random.Random(5)))

    assert excinfo.value.stage == "round 1"
    for name in ("voters", "votes", "election_results"):
        assert asyncio.run(mongo[name].count_documents({})) == 0
    assert asyncio.run(mongo["candidates"].count_documents({})) == 2


def test_round_two_extension(mongo):
    seed_candidates("Alice", "Bob", "Carol")

    summary = asyncio.run(simulation.simulate(rounds=2, rng=random.Random(11)))
    assert summary["round"] == 2

    results = asyncio.run(simulation.get_results())
    assert sum(r["vote_count"] for r in results["round1"]) == 100
    assert sum(r["vote_count"] for r in results["round2"]) == 100
    finalists = {r["candidate_id"] for r in results["round1"][:2]}
    assert {r["candidate_id"] for r in results["round2"]} <= finalists
    assert len(set(asyncio.run(all_cnps(mongo)))) == 200


def test_top_candidates():
    candidates = [{"id": 1, "name": "A"}, {"id": 2, "name": "B"}, {"id": 3, "name": "C"}]
    results = [{"candidate_id": 3}, {"candidate_id": 1}, {"candidate_id": 2}]
    assert simulation.top_candidates(results, candidates) == [candidates[2], candidates[0]]


def test_reset_is_idempotent(mongo):
    seed_candidates("Alice")
    asyncio.run(simulation.simulate(rng=random.Random(9)))
    asyncio.run(simulation.reset())
    asyncio.run(simulation.reset())

    assert asyncio.run(simulation.get_results()) == {"round1": [], "round2": []}
    assert asyncio.run(mongo["candidates"].count_documents({})) == 1


def test_election_endpoints(client):
    response = client.post("/api/election/simulate")
    assert response.status_code == 200
    assert response.json()["message"] == "Election simulated successfully."

    results = client.get("/api/election/results").json()
    assert sum(r["vote_count"] for r in results["round1"]) == 100
    assert results["round2"] == []

    assert client.post("/api/election/reset").json() == {"message": "Election reset successfully."}
    assert client.get("/api/election/results").json() == {"round1": [], "round2": []}


def test_simulate_endpoint_without_candidates(client):
    for candidate_id in (1, 2, 3):
        client.delete(f"/api/candidates/{candidate_id}")

    response = client.post("/api/election/simulate")
    assert response.status_code == 500
    assert response.json() == {"error": "Election simulation failed", "stage": "load candidates"}


def test_registration_after_simulation_gets_fresh_ids(client):
    client.post("/api/election/simulate")
    response = client.post("/api/register", json={"cnp": "0000000000001"})
    assert response.json()["id"] == 101


def test_failed_insert_waits_for_slow_siblings_before_cleanup(mongo, monkeypatch):
    seed_candidates("Alice", "Bob")
    real_collection = simulation.collection

    class FlakyVoters:
        def __init__(self, wrapped):
            self._wrapped = wrapped
            self.calls = 0

        def __getattr__(self, name):
            return getattr(self._wrapped, name)

        async def insert_one(self, document):
            self.calls += 1
            if self.calls == 1:
                raise PyMongoError("insert failed")
            await asyncio.sleep(0.05)
            return await self._wrapped.insert_one(document)

    flaky = FlakyVoters(real_collection("voters"))

    def patched_collection(name):
        return flaky if name == "voters" else real_collection(name)

    monkeypatch.setattr(simulation, "collection", patched_collection)

    async def scenario():
        with pytest.raises(SimulationError):
            await simulation.simulate(rng=random.Random(8))
        right_after = await mongo["voters"].count_documents({})
        await asyncio.sleep(0.2)
        later = await mongo["voters"].count_documents({})
        return right_after, later

    assert asyncio.run(scenario()) == (0, 0)
