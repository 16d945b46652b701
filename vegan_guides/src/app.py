"""
Quart application for the vegan restaurant map.

Serves the restaurant search API, the photo proxy and the streaming chat
assistant. One aiohttp session is shared by all outbound calls; Redis is
optional and only backs metrics and the city search cache.
"""

import logging

import aiohttp
from quart import Quart
from quart_cors import cors
from redis import asyncio as aioredis

from vegan_guides.config import get_config, setup_logging
from .routes import register_blueprints

logger = logging.getLogger(__name__)

app = Quart(__name__)
app = cors(app, allow_origin=get_config().cors_origins, allow_methods=["GET", "POST", "OPTIONS"])

# Global async clients
aiohttp_session: aiohttp.ClientSession | None = None
redis_client: aioredis.Redis | None = None

register_blueprints(app)


@app.before_serving
async def startup():
    global aiohttp_session, redis_client
    config = get_config()
    aiohttp_session = aiohttp.ClientSession(headers={"User-Agent": "vegan-guides-async"})
    if not config.redis_url:
        app.logger.info("REDIS_URL not set; running without cache")
        return
    try:
        redis_client = aioredis.from_url(config.redis_url)
        await redis_client.ping()
        app.logger.info("Redis connected")
    except Exception as e:
        redis_client = None
        app.logger.warning("Redis not available (%s); running without cache", e)


@app.after_serving
async def shutdown():
    global aiohttp_session, redis_client
    if aiohttp_session:
        await aiohttp_session.close()
        aiohttp_session = None
    if redis_client:
        await redis_client.aclose()
        redis_client = None


def main():
    setup_logging()
    config = get_config()
    app.run(host="0.0.0.0", port=config.port, debug=config.debug)


if __name__ == "__main__":
    main()
