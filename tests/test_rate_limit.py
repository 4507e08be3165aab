from redis.exceptions import ConnectionError as RedisConnectionError

from app.utils import rate_limit
from app.utils.rate_limit import RateLimiter


class Clock:
    def __init__(self, now=1_700_000_000.0):
        self.now = now

    def __call__(self):
        return self.now


class FakePipeline:
    def __init__(self, client):
        self.client = client
        self.calls = []

    def __getattr__(self, name):
        def queue(*args, **kwargs):
            self.calls.append((name, args, kwargs))
            return self
        return queue

    async def execute(self):
        results = []
        for name, args, kwargs in self.calls:
            results.append(await getattr(self.client, name)(*args, **kwargs))
        return results


class FakeSortedSetRedis:
    """Just enough of the sorted set commands for the limiter."""

    def __init__(self):
        self.sets = {}
        self.ttls = {}

    def pipeline(self):
        return FakePipeline(self)

    async def zremrangebyscore(self, key, low, high):
        members = self.sets.get(key, {})
        stale = [m for m, score in members.items() if low <= score <= high]
        for m in stale:
            del members[m]
        return len(stale)

    async def zcard(self, key):
        return len(self.sets.get(key, {}))

    async def zrange(self, key, start, end, withscores=False):
        ordered = sorted(self.sets.get(key, {}).items(), key=lambda item: item[1])
        return ordered[start:end + 1]

    async def zadd(self, key, mapping):
        self.sets.setdefault(key, {}).update(mapping)
        return len(mapping)

    async def expire(self, key, seconds):
        self.ttls[key] = seconds
        return True


class BrokenRedis:
    def pipeline(self):
        raise RedisConnectionError("connection refused")


async def test_memory_limiter_blocks_after_limit(monkeypatch):
    clock = Clock()
    monkeypatch.setattr(rate_limit.time, "time", clock)
    limiter = RateLimiter()

    assert (await limiter.allow(key="ip", limit=2, window_seconds=60)).allowed
    assert (await limiter.allow(key="ip", limit=2, window_seconds=60)).allowed

    blocked = await limiter.allow(key="ip", limit=2, window_seconds=60)
    assert not blocked.allowed
    assert blocked.retry_after_seconds == 60

    clock.now += 61
    assert (await limiter.allow(key="ip", limit=2, window_seconds=60)).allowed


async def test_memory_limiter_drops_expired_buckets(monkeypatch):
    clock = Clock()
    monkeypatch.setattr(rate_limit.time, "time", clock)
    limiter = RateLimiter()

    for i in range(10_000):
        await limiter.allow(key=f"token_access:10.0.{i // 256}.{i % 256}", limit=50, window_seconds=900)
    assert limiter.tracked_keys == 10_000

    clock.now += 10 * 3600
    await limiter.allow(key="token_access:10.9.9.9", limit=50, window_seconds=900)

    assert limiter.tracked_keys == 1


async def test_sweep_keeps_buckets_still_inside_their_window(monkeypatch):
    clock = Clock()
    monkeypatch.setattr(rate_limit.time, "time", clock)
    limiter = RateLimiter()

    await limiter.allow(key="short", limit=5, window_seconds=60)
    await limiter.allow(key="long", limit=5, window_seconds=3600)

    clock.now += 120
    await limiter.allow(key="other", limit=5, window_seconds=60)

    assert limiter.tracked_keys == 2


async def test_redis_limiter_uses_sorted_set(monkeypatch):
    clock = Clock()
    monkeypatch.setattr(rate_limit.time, "time", clock)
    client = FakeSortedSetRedis()
    limiter = RateLimiter(client)

    assert (await limiter.allow(key="ip", limit=2, window_seconds=60)).allowed
    clock.now += 10
    assert (await limiter.allow(key="ip", limit=2, window_seconds=60)).allowed

    blocked = await limiter.allow(key="ip", limit=2, window_seconds=60)
    assert not blocked.allowed
    assert blocked.retry_after_seconds == 50
    assert len(client.sets["rate_limit:ip"]) == 2
    assert client.ttls["rate_limit:ip"] == 60
    # nothing was kept in process memory
    assert limiter.tracked_keys == 0

    clock.now += 51
    assert (await limiter.allow(key="ip", limit=2, window_seconds=60)).allowed


async def test_redis_failure_falls_back_to_memory():
    limiter = RateLimiter(BrokenRedis())

    assert (await limiter.allow(key="ip", limit=1, window_seconds=60)).allowed
    assert not (await limiter.allow(key="ip", limit=1, window_seconds=60)).allowed
    assert limiter.tracked_keys == 1
