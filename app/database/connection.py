import logging

import motor.motor_asyncio
from pymongo import ASCENDING, DESCENDING, ReturnDocument

from app.config import MONGO_URI, MONGO_DB, SEED_CANDIDATES

logger = logging.getLogger(__name__)

client = motor.motor_asyncio.AsyncIOMotorClient(MONGO_URI)
db = client[MONGO_DB]

CANDIDATES = "candidates"
VOTERS = "voters"
VOTES = "votes"
ELECTION_RESULTS = "election_results"
COUNTERS = "counters"

INITIAL_CANDIDATES = [
    {
        "name": "Nicusor Dan",
        "party": "Independent",
        "description": "A candidate with a vision for the future.",
        "image": "https://media.b1tv.ro/unsafe/1260x709/smart/filters:contrast(5):format(jpeg):quality(80)/http://www.b1tv.ro/wp-content/uploads/2025/05/nicusor-dan-3-2-1920x1028.jpg",
    },
    {
        "name": "Gabriela Firea",
        "party": "Social Democratic Party",
        "description": "Focused on social policies and city development.",
        "image": "https://cdn.knd.ro/media/image/2021/04/15/2e5e1b643a18a59815041a798547379f5a7d6569.jpg?width=1200&height=&trim=0,0,0,0",
    },
    {
        "name": "Cristian Popescu Piedone",
        "party": "Humanist Social Liberal Party",
        "description": "Advocates for the people of the city.",
        "image": "https://static.hyperflash.ro/media/2021/05/cristian-popescu-piedone-1-scaled-1-1024x576.jpg",
    },
]


def collection(name: str):
    # Resolved on every call so the database can be swapped (tests use an in-memory client)
    return db[name]


async def next_id(name: str) -> int:
    """Allocate the next sequential integer id for a collection."""
    counter = await collection(COUNTERS).find_one_and_update(
        {"_id": name},
        {"$inc": {"seq": 1}},
        upsert=True,
        return_document=ReturnDocument.AFTER,
    )
    return counter["seq"]


async def reserve_ids(name: str, count: int) -> list:
    """Allocate `count` consecutive ids in one round trip."""
    if count <= 0:
        return []
    counter = await collection(COUNTERS).find_one_and_update(
        {"_id": name},
        {"$inc": {"seq": count}},
        upsert=True,
        return_document=ReturnDocument.AFTER,
    )
    last = counter["seq"]
    return list(range(last - count + 1, last + 1))


async def reset_counters(*names: str):
    await collection(COUNTERS).delete_many({"_id": {"$in": list(names)}})


async def init_db():
    """Create indexes and seed the demo candidates into an empty store."""
    await collection(CANDIDATES).create_index("id", unique=True)
    await collection(VOTERS).create_index("id", unique=True)
    await collection(VOTERS).create_index("cnp", unique=True)
    await collection(VOTES).create_index("id", unique=True)
    # At most one vote per voter, enforced by the store
    await collection(VOTES).create_index("voter_id", unique=True)
    await collection(ELECTION_RESULTS).create_index(
        [("round_number", ASCENDING), ("vote_count", DESCENDING)]
    )
    logger.info("Indexes created or already exist on %s", MONGO_DB)

    if SEED_CANDIDATES and await collection(CANDIDATES).count_documents({}) == 0:
        logger.info("Seeding candidates...")
        for candidate in INITIAL_CANDIDATES:
            record = dict(candidate)
            record["id"] = await next_id(CANDIDATES)
            await collection(CANDIDATES).insert_one(record)
        logger.info("Candidates seeded.")
