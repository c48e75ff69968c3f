from datetime import datetime, timedelta

from utils.errors import RateLimited


async def rate_limit(
    db,
    key: str,
    max_requests: int,
    window_seconds: int,
):
    """
    Fixed-window counter stored in Mongo, shared by every worker process.
    A window that has ended is restarted by the next request.
    """
    now = datetime.utcnow()
    window_start = now - timedelta(seconds=window_seconds)

    record = await db.rate_limits.find_one({"key": key})

    if not record or record.get("window_started_at", now) <= window_start:
        await db.rate_limits.update_one(
            {"key": key},
            {"$set": {"count": 1, "window_started_at": now}},
            upsert=True,
        )
        return

    if record.get("count", 0) >= max_requests:
        raise RateLimited()

    await db.rate_limits.update_one(
        {"key": key},
        {"$inc": {"count": 1}},
    )
