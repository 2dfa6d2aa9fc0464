"""
Election simulator.

A simulated round generates synthetic voters with unique 13-digit national
identifiers, lets every voter pick a candidate uniformly at random and
tallies the ballots into one ElectionResult row per candidate.

Only round 1 runs by default. Round 2 (a runoff between the two leading
candidates of round 1) is available through ``simulate(rounds=2)`` but is
not wired to any route.

The simulation is not transactional. If anything fails after the initial
reset, the partially written state is wiped again and SimulationError is
raised, so callers end up with either a complete round or an empty store.
"""
import asyncio
import logging
import random
from typing import Optional

from pymongo import ASCENDING, DESCENDING

from app.config import CNP_LENGTH, SIMULATION_VOTERS
from app.crud import NO_OBJECT_ID, list_candidates, store_errors
from app.database.connection import (
    ELECTION_RESULTS,
    VOTERS,
    VOTES,
    collection,
    reserve_ids,
    reset_counters,
)
from app.errors import SimulationError, StoreFailure

logger = logging.getLogger(__name__)

LOWEST_CNP = 10 ** (CNP_LENGTH - 1)
HIGHEST_CNP = 10 ** CNP_LENGTH - 1


@store_errors("reset election")
async def reset():
    """Wipe voters, votes and results. Candidates and news are left alone."""
    await collection(VOTERS).delete_many({})
    await collection(VOTES).delete_many({})
    await collection(ELECTION_RESULTS).delete_many({})
    await reset_counters(VOTERS, VOTES, ELECTION_RESULTS)
    logger.info("Election state reset")


def generate_cnps(count: int, rng: random.Random, taken=frozenset()) -> list:
    """Draw `count` distinct 13-digit identifiers, discarding collisions."""
    cnps = set()
    while len(cnps) < count:
        cnp = str(rng.randint(LOWEST_CNP, HIGHEST_CNP))
        if cnp not in taken:
            cnps.add(cnp)
    return sorted(cnps)


async def gather_all(aws):
    """Await every write, then raise the first failure once all have settled."""
    outcomes = await asyncio.gather(*aws, return_exceptions=True)
    for outcome in outcomes:
        if isinstance(outcome, BaseException):
            raise outcome
    return outcomes


async def insert_voters(cnps: list) -> list:
    voter_ids = await reserve_ids(VOTERS, len(cnps))
    voters = collection(VOTERS)
    await gather_all([
        voters.insert_one({"id": voter_id, "cnp": cnp, "has_voted": False})
        for voter_id, cnp in zip(voter_ids, cnps)
    ])
    return voter_ids


async def cast_random_votes(voter_ids: list, candidates: list, rng: random.Random):
    """Every voter votes once, for a candidate chosen independently at random."""
    vote_ids = await reserve_ids(VOTES, len(voter_ids))
    votes = collection(VOTES)
    # Fan out one insert per ballot; a single failure fails the whole stage
    await gather_all([
        votes.insert_one({
            "id": vote_id,
            "voter_id": voter_id,
            "candidate_id": rng.choice(candidates)["id"],
        })
        for vote_id, voter_id in zip(vote_ids, voter_ids)
    ])
    await collection(VOTERS).update_many(
        {"id": {"$in": voter_ids}, "has_voted": False},
        {"$set": {"has_voted": True}},
    )


async def tally(round_number: int, voter_ids: list) -> list:
    """Count this round's ballots per candidate and persist the result rows."""
    pipeline = [
        {"$match": {"voter_id": {"$in": voter_ids}}},
        {"$group": {"_id": "$candidate_id", "count": {"$sum": 1}}},
        {"$sort": {"count": -1, "_id": 1}},
    ]
    counts = []
    async for row in collection(VOTES).aggregate(pipeline):
        counts.append(row)
    if not counts:
        return []

    # Names are captured now; later renames do not touch stored results
    names = {c["id"]: c["name"] for c in await list_candidates()}
    result_ids = await reserve_ids(ELECTION_RESULTS, len(counts))
    results = []
    for result_id, row in zip(result_ids, counts):
        candidate_id = row["_id"]
        if candidate_id not in names:
            logger.warning("Votes recorded for unknown candidate %s", candidate_id)
        results.append({
            "id": result_id,
            "round_number": round_number,
            "candidate_id": candidate_id,
            "candidate_name": names.get(candidate_id, "Unknown candidate"),
            "vote_count": row["count"],
        })
    await collection(ELECTION_RESULTS).insert_many([dict(r) for r in results])
    return results


def top_candidates(results: list, candidates: list, n: int = 2) -> list:
    """Candidates of the n best result rows, in result order."""
    by_id = {c["id"]: c for c in candidates}
    return [by_id[r["candidate_id"]] for r in results[:n] if r["candidate_id"] in by_id]


async def run_round(round_number: int, candidates: list, voter_count: int,
                    rng: random.Random, taken=frozenset()):
    cnps = generate_cnps(voter_count, rng, taken)
    voter_ids = await insert_voters(cnps)
    await cast_random_votes(voter_ids, candidates, rng)
    results = await tally(round_number, voter_ids)
    logger.info("Round %s tallied: %s votes over %s candidates",
                round_number, len(voter_ids), len(results))
    return results, cnps


async def simulate(rounds: int = 1, voter_count: int = SIMULATION_VOTERS, rng: Optional[random.Random] = None):
    """Reset the election and simulate it end to end. Returns a round summary."""
    if rounds not in (1, 2):
        raise ValueError("rounds must be 1 or 2")
    rng = rng or random.Random()
    logger.info("Starting election simulation with %s voters", voter_count)

    await reset()

    try:
        candidates = await list_candidates()
    except StoreFailure as e:
        raise SimulationError("Could not load candidates", stage="load candidates") from e
    if not candidates:
        raise SimulationError("No candidates registered; nothing to simulate",
                              stage="load candidates")

    stage = "round 1"
    try:
        results, cnps = await run_round(1, candidates, voter_count, rng)
        summary = {"round": 1, "voters": len(cnps), "results": results}
        if rounds == 2:
            stage = "round 2"
            finalists = top_candidates(results, candidates)
            results, _ = await run_round(2, finalists, voter_count, rng, taken=set(cnps))
            summary = {"round": 2, "voters": len(cnps), "results": results}
    except Exception as e:
        logger.exception("Election simulation aborted during %s", stage)
        try:
            await reset()
        except StoreFailure:
            logger.error("Could not clean up after aborted simulation")
        raise SimulationError(f"Simulation failed during {stage}", stage=stage) from e

    logger.info("Election simulation finished")
    return summary


@store_errors("fetch results")
async def get_results():
    cursor = collection(ELECTION_RESULTS).find({}, NO_OBJECT_ID).sort(
        [("round_number", ASCENDING), ("vote_count", DESCENDING), ("id", ASCENDING)]
    )
    buckets = {"round1": [], "round2": []}
    async for row in cursor:
        key = f"round{row['round_number']}"
        if key in buckets:
            buckets[key].append(row)
    return buckets
