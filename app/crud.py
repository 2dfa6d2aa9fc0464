import functools
import logging
from typing import Optional

from pymongo import ASCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from app.config import CNP_LENGTH
from app.database.connection import CANDIDATES, VOTERS, VOTES, collection, next_id
from app.errors import AlreadyVotedError, NotFoundError, StoreFailure, ValidationError
from app.models.candidate_model import CandidateIn

logger = logging.getLogger(__name__)

# Never return Mongo's internal _id
NO_OBJECT_ID = {"_id": 0}


def store_errors(action: str):
    """Turn driver errors raised by an async store call into StoreFailure."""
    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except PyMongoError as e:
                logger.exception("Store failure while trying to %s", action)
                raise StoreFailure(f"Failed to {action}") from e
        return wrapper
    return decorator


# ------------------------------
# Candidates
# ------------------------------

@store_errors("fetch candidates")
async def list_candidates():
    cursor = collection(CANDIDATES).find({}, NO_OBJECT_ID).sort("id", ASCENDING)
    candidates = []
    async for candidate in cursor:
        candidates.append(candidate)
    return candidates


@store_errors("fetch candidate")
async def get_candidate(candidate_id: int):
    candidate = await collection(CANDIDATES).find_one({"id": candidate_id}, NO_OBJECT_ID)
    if not candidate:
        raise NotFoundError("Candidate not found.")
    return candidate


@store_errors("create candidate")
async def create_candidate(data: CandidateIn):
    candidate = data.model_dump()
    candidate["id"] = await next_id(CANDIDATES)
    await collection(CANDIDATES).insert_one(dict(candidate))
    logger.info("Created candidate %s (%s)", candidate["id"], candidate["name"])
    return candidate


@store_errors("update candidate")
async def update_candidate(candidate_id: int, data: CandidateIn):
    updated = await collection(CANDIDATES).find_one_and_update(
        {"id": candidate_id},
        {"$set": data.model_dump()},
        projection=NO_OBJECT_ID,
        return_document=ReturnDocument.AFTER,
    )
    if not updated:
        raise NotFoundError("Candidate not found.")
    return updated


@store_errors("delete candidate")
async def delete_candidate(candidate_id: int):
    result = await collection(CANDIDATES).delete_one({"id": candidate_id})
    if result.deleted_count == 0:
        raise NotFoundError("Candidate not found.")


# ------------------------------
# Voters & ballots
# ------------------------------

@store_errors("register voter")
async def register_voter(cnp: Optional[str]):
    """
    Register a voter by national identifier (CNP).
    Returns (voter, existed). Registering the same CNP again returns the
    stored voter with existed=True instead of creating a duplicate.
    """
    if not cnp or len(cnp) != CNP_LENGTH:
        raise ValidationError("Invalid CNP")

    voters = collection(VOTERS)
    voter = await voters.find_one({"cnp": cnp}, NO_OBJECT_ID)
    if voter:
        return voter, True

    voter = {"id": await next_id(VOTERS), "cnp": cnp, "has_voted": False}
    try:
        await voters.insert_one(dict(voter))
    except DuplicateKeyError:
        # Lost a race with a concurrent registration; the unique index decides the winner
        existing = await voters.find_one({"cnp": cnp}, NO_OBJECT_ID)
        if existing is None:
            raise
        return existing, True

    logger.info("Registered voter %s", voter["id"])
    return voter, False


@store_errors("fetch voter")
async def get_voter(voter_id: int):
    voter = await collection(VOTERS).find_one({"id": voter_id}, NO_OBJECT_ID)
    if not voter:
        raise NotFoundError("Voter not found.")
    return voter


@store_errors("cast vote")
async def cast_vote(voter_id: int, candidate_id: int):
    """
    Record a single ballot for a voter.

    The has_voted flag is claimed with a conditional update before the vote
    row is written, so only one request can ever get past it. If the vote
    insert then fails the flag is released again.
    """
    voters = collection(VOTERS)
    voter = await voters.find_one({"id": voter_id})
    if not voter:
        raise NotFoundError("Voter not found.")
    if voter.get("has_voted"):
        logger.warning("Voter %s tried to vote twice", voter_id)
        raise AlreadyVotedError()

    claimed = await voters.find_one_and_update(
        {"id": voter_id, "has_voted": False},
        {"$set": {"has_voted": True}},
    )
    if claimed is None:
        logger.warning("Voter %s lost a concurrent vote race", voter_id)
        raise AlreadyVotedError()

    try:
        vote = {"id": await next_id(VOTES), "voter_id": voter_id, "candidate_id": candidate_id}
        await collection(VOTES).insert_one(vote)
    except DuplicateKeyError:
        # A vote row already exists for this voter; the flag stays set
        raise AlreadyVotedError()
    except PyMongoError:
        await voters.update_one({"id": voter_id}, {"$set": {"has_voted": False}})
        raise

    logger.info("Voter %s cast a vote for candidate %s", voter_id, candidate_id)
