"""
Lightweight async metrics helpers that write counters and latency samples to Redis.

Design:
- Counters: Redis INCR on key `metrics:counter:{name}`
- Latency samples: LPUSH to `metrics:lat:{name}`, LTRIM to keep last 1000 samples
- get_metrics() aggregates counters and computes simple stats for lat samples (count, avg, p50)
- If Redis is not available, values are kept in-memory (process-local).
"""

import logging
import statistics
from typing import Any, Dict, List

logger = logging.getLogger(__name__)

_MEM_COUNTERS: Dict[str, int] = {}
_MEM_LATS: Dict[str, List[float]] = {}


def _get_redis():
    # Imported lazily to avoid a circular import with the app module
    from vegan_guides.src import app as app_module
    return app_module.redis_client


def _mem_increment(name: str, amount: int) -> None:
    _MEM_COUNTERS[name] = _MEM_COUNTERS.get(name, 0) + amount


def _mem_observe(name: str, ms: float, max_samples: int) -> None:
    samples = _MEM_LATS.setdefault(name, [])
    samples.insert(0, ms)
    del samples[max_samples:]


async def increment(name: str, amount: int = 1) -> None:
    """Increment a named counter by amount"""
    rc = _get_redis()
    if rc is None:
        _mem_increment(name, amount)
        return
    try:
        await rc.incrby(f"metrics:counter:{name}", amount)
    except Exception:
        logger.warning("Redis metrics write failed for %s; keeping it in memory", name)
        _mem_increment(name, amount)


async def observe_latency(name: str, ms: float, max_samples: int = 1000) -> None:
    """Record a latency sample (milliseconds) for a named metric"""
    rc = _get_redis()
    if rc is None:
        _mem_observe(name, ms, max_samples)
        return
    key = f"metrics:lat:{name}"
    try:
        await rc.lpush(key, str(ms))
        await rc.ltrim(key, 0, max_samples - 1)
    except Exception:
        logger.warning("Redis latency write failed for %s; keeping it in memory", name)
        _mem_observe(name, ms, max_samples)


def _summarize(values: List[float]) -> Dict[str, float]:
    return {
        'count': len(values),
        'avg_ms': sum(values) / len(values),
        'p50_ms': float(statistics.median(values)),
    }


def _decode(key) -> str:
    return key.decode() if isinstance(key, (bytes, bytearray)) else key


async def get_metrics() -> Dict[str, Any]:
    """Return a JSON-serializable dict of metrics: counters and simple latency stats.

    Redis values are merged with any in-memory samples recorded while Redis
    was unavailable.
    """
    counters: Dict[str, int] = dict(_MEM_COUNTERS)
    lat_values: Dict[str, List[float]] = {n: list(v) for n, v in _MEM_LATS.items()}

    rc = _get_redis()
    if rc is not None:
        # KEYS is fine for the handful of metric names we write
        for k in await rc.keys('metrics:counter:*'):
            key = _decode(k)
            name = key.split(':', 2)[-1]
            v = await rc.get(key)
            counters[name] = counters.get(name, 0) + (int(v) if v is not None else 0)
        for k in await rc.keys('metrics:lat:*'):
            key = _decode(k)
            name = key.split(':', 2)[-1]
            vals = [float(v) for v in await rc.lrange(key, 0, -1)]
            lat_values.setdefault(name, []).extend(vals)

    return {
        'counters': counters,
        'latencies': {n: _summarize(vals) for n, vals in lat_values.items() if vals},
    }


def reset_memory_metrics() -> None:
    _MEM_COUNTERS.clear()
    _MEM_LATS.clear()
