"""
Connections to external systems: the shared async Redis client used by the
event list cache and the Redis seat lock.
"""

from .redis_client import get_redis, close_redis

__all__ = ['get_redis', 'close_redis']
