"""Redis client factory: used for the notification bus only.

NOT used for balances, pools or market state (those go through PostgreSQL).
"""

import redis.asyncio as aioredis


def create_redis(url: str, socket_timeout: float | None = 5.0) -> aioredis.Redis:
    """Create a Redis client backed by its own connection pool.

    socket_timeout bounds every command, so a stalled server fails a PUBLISH
    instead of holding the notification worker forever.
    """
    return aioredis.from_url(
        url,
        decode_responses=True,
        socket_timeout=socket_timeout,
        socket_connect_timeout=socket_timeout,
    )


async def close_redis(client: aioredis.Redis) -> None:
    await client.aclose()
