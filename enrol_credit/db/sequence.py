"""Integer id allocation for documents the platform addresses by number."""

from pymongo import ReturnDocument

from enrol_credit.models.counter import Counter


async def next_id(name: str) -> int:
    """Atomically bump and return the sequence for name (first call returns 1)."""
    doc = await Counter.get_motor_collection().find_one_and_update(
        {"_id": name},
        {"$inc": {"seq": 1}},
        upsert=True,
        return_document=ReturnDocument.AFTER,
    )
    return doc["seq"]
