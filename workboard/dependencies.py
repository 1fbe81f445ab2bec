"""FastAPI dependencies for the workboard API."""
import redis.asyncio as redis

# Global Redis client (initialized in main.py lifespan when REDIS_URL is set)
redis_client: redis.Redis | None = None
