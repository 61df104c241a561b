from __future__ import annotations

from types import SimpleNamespace

from backend import cache_backend


def test_memory_cache_backend_round_trip_and_ttl():
    backend = cache_backend.MemoryCacheBackend()
    backend.set("k", "v", ttl_seconds=1)
    assert backend.get("k") == "v"
    assert backend.incr("counter", ttl_seconds=10) == 1
    assert backend.incr("counter", ttl_seconds=10) == 2
    backend.delete("k")
    assert backend.get("k") is None


def test_memory_cache_backend_json_helpers():
    backend = cache_backend.MemoryCacheBackend()
    backend.set_json("pool", [{"objectId": 1}], ttl_seconds=30)
    assert backend.get_json("pool") == [{"objectId": 1}]
    backend.set("broken", "{not json")
    assert backend.get_json("broken") is None
    assert backend.get_json("missing") is None


def test_memory_sorted_set_keeps_best_score_and_orders_desc():
    backend = cache_backend.MemoryCacheBackend()
    backend.zadd_max("lb", "ann", 300)
    backend.zadd_max("lb", "bob", 500)
    backend.zadd_max("lb", "ann", 200)  # lower; ignored
    backend.zadd_max("lb", "cat", 400)

    assert backend.ztop("lb", 10) == [("bob", 500.0), ("cat", 400.0), ("ann", 300.0)]
    assert backend.ztop("lb", 1) == [("bob", 500.0)]
    assert backend.ztop("lb", 0) == []
    assert backend.ztop("missing", 5) == []


def test_memory_sorted_set_ties_ordered_by_member_desc():
    backend = cache_backend.MemoryCacheBackend()
    backend.zadd_max("lb", "alice", 100)
    backend.zadd_max("lb", "bob", 100)
    assert [m for m, _ in backend.ztop("lb", 2)] == ["bob", "alice"]


def test_memory_sorted_set_trim():
    backend = cache_backend.MemoryCacheBackend()
    for i in range(5):
        backend.zadd_max("lb", f"p{i}", i)
    backend.ztrim_top("lb", 2)
    assert backend.ztop("lb", 10) == [("p4", 4.0), ("p3", 3.0)]


def test_get_cache_backend_falls_back_to_memory(monkeypatch):
    monkeypatch.setattr(cache_backend.config, "REDIS_URL", "")
    cache_backend.reset_cache_backend_for_tests()
    backend = cache_backend.get_cache_backend()
    assert backend.backend == "memory"
    assert cache_backend.get_cache_backend() is backend


class FakeRedisClient:
    def __init__(self):
        self.store = {}
        self.zsets = {}
        self.calls = []

    def ping(self):
        return True

    def get(self, key):
        return self.store.get(key)

    def set(self, key, value):
        self.store[key] = value

    def setex(self, key, _ttl, value):
        self.store[key] = value

    def delete(self, key):
        self.store.pop(key, None)

    def incr(self, key):
        current = int(self.store.get(key, "0"))
        current += 1
        self.store[key] = str(current)
        return current

    def expire(self, _key, _ttl):
        return True

    def zadd(self, key, mapping, gt=False):
        self.calls.append(("zadd", key, dict(mapping), gt))
        zset = self.zsets.setdefault(key, {})
        for member, score in mapping.items():
            if member not in zset or not gt or score > zset[member]:
                zset[member] = score

    def zrevrange(self, key, start, end, withscores=False):
        ranked = sorted(self.zsets.get(key, {}).items(), key=lambda kv: (kv[1], kv[0]), reverse=True)
        return ranked[start:end + 1]

    def zremrangebyrank(self, key, start, end):
        self.calls.append(("zremrangebyrank", key, start, end))
        ranked = sorted(self.zsets.get(key, {}).items(), key=lambda kv: (kv[1], kv[0]))
        stop = len(ranked) + end if end < 0 else end
        for member, _ in ranked[start:stop + 1]:
            del self.zsets[key][member]


def test_get_cache_backend_uses_redis_when_available(monkeypatch):
    fake_client = FakeRedisClient()
    fake_redis_module = SimpleNamespace(from_url=lambda *_args, **_kwargs: fake_client)

    monkeypatch.setattr(cache_backend.config, "REDIS_URL", "redis://example")
    monkeypatch.setattr(cache_backend, "redis", fake_redis_module)
    cache_backend.reset_cache_backend_for_tests()

    backend = cache_backend.get_cache_backend()
    assert backend.backend == "redis"
    backend.set_json("sample", {"ok": True}, ttl_seconds=30)
    assert backend.get_json("sample") == {"ok": True}
    assert backend.incr("counter", ttl_seconds=30) == 1


def test_redis_sorted_set_uses_gt_and_rank_trim(monkeypatch):
    fake_client = FakeRedisClient()
    monkeypatch.setattr(cache_backend, "redis", SimpleNamespace(from_url=lambda *_a, **_k: fake_client))
    backend = cache_backend.RedisCacheBackend("redis://example")

    for i in range(12):
        backend.zadd_max("lb", f"p{i}", i * 10)
    backend.zadd_max("lb", "p11", 5)
    backend.ztrim_top("lb", 10)

    assert ("zadd", "lb", {"p0": 0.0}, True) in fake_client.calls
    assert ("zremrangebyrank", "lb", 0, -11) in fake_client.calls
    top = backend.ztop("lb", 10)
    assert len(top) == 10
    assert top[0] == ("p11", 110.0)
    assert top[-1] == ("p2", 20.0)


def test_get_cache_backend_falls_back_when_redis_ping_fails(monkeypatch):
    class BadRedisClient:
        def ping(self):
            raise RuntimeError("cannot connect")

    fake_redis_module = SimpleNamespace(from_url=lambda *_args, **_kwargs: BadRedisClient())
    monkeypatch.setattr(cache_backend.config, "REDIS_URL", "redis://broken")
    monkeypatch.setattr(cache_backend, "redis", fake_redis_module)
    cache_backend.reset_cache_backend_for_tests()

    backend = cache_backend.get_cache_backend()
    assert backend.backend == "memory"
