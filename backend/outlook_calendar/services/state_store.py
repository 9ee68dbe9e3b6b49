"""Pending sign-in flow store.

Holds the MSAL auth-code flow dict between /signin and the callback, keyed by
its ``state``. Memory by default; Redis when several workers serve the app.
"""
from __future__ import annotations
import json
import time
from typing import Protocol, Optional, Dict, Any, List, Callable


class StateStore(Protocol):
    def put(self, state: str, flow: Dict[str, Any], created_at: float) -> None: ...
    def pop(self, state: str) -> Optional[Dict[str, Any]]: ...
    def prune(self) -> None: ...
    def size(self) -> int: ...


class MemoryStateStore:
    def __init__(self, ttl_seconds: float = 600, max_entries: int = 50, time_provider: Optional[Callable[[], float]] = None):
        self._data: Dict[str, Dict[str, Any]] = {}
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self.time_provider = time_provider or time.time

    def put(self, state: str, flow: Dict[str, Any], created_at: float) -> None:
        self._data[state] = {"flow": flow, "created_at": created_at}
        self.prune()

    def pop(self, state: str) -> Optional[Dict[str, Any]]:
        self.prune()
        entry = self._data.pop(state, None)
        return entry["flow"] if entry else None

    def prune(self) -> None:
        now_ts = self.time_provider()
        expired = [k for k, v in self._data.items() if now_ts - v["created_at"] > self.ttl_seconds]
        for k in expired:
            self._data.pop(k, None)
        # Enforce cap, oldest first
        while len(self._data) > self.max_entries:
            oldest_key = min(self._data.items(), key=lambda kv: kv[1]["created_at"])[0]
            self._data.pop(oldest_key, None)

    def size(self) -> int:
        return len(self._data)

    def __contains__(self, state: str) -> bool:
        return state in self._data


class RedisStateStore:
    """Redis-backed implementation.

    Key layout:
      oc:auth:flow:<state> -> JSON encoded flow (TTL applied)
      oc:auth:flows (sorted set) -> member=state, score=created_at
    The sorted set only serves capacity enforcement; expiry is left to Redis.
    """
    FLOW_KEY_PREFIX = "oc:auth:flow:"
    FLOW_INDEX_KEY = "oc:auth:flows"

    def __init__(self, redis_client, ttl_seconds: float = 600, max_entries: int = 50):
        self.redis = redis_client
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries

    def put(self, state: str, flow: Dict[str, Any], created_at: float) -> None:
        pipe = self.redis.pipeline()
        pipe.set(self.FLOW_KEY_PREFIX + state, json.dumps(flow), ex=int(self.ttl_seconds))
        pipe.zadd(self.FLOW_INDEX_KEY, {state: created_at})
        pipe.execute()
        self.prune()

    def pop(self, state: str) -> Optional[Dict[str, Any]]:
        key = self.FLOW_KEY_PREFIX + state
        pipe = self.redis.pipeline()
        pipe.get(key)
        pipe.delete(key)
        pipe.zrem(self.FLOW_INDEX_KEY, state)
        val, *_ = pipe.execute()
        if val is None:
            return None
        return json.loads(val.decode() if isinstance(val, bytes) else val)

    def prune(self) -> None:
        # Index members whose key already expired
        members: List[bytes] = self.redis.zrange(self.FLOW_INDEX_KEY, 0, -1) or []
        dangling = [
            s for s in (_decode(m) for m in members)
            if not self.redis.exists(self.FLOW_KEY_PREFIX + s)
        ]
        if dangling:
            self.redis.zrem(self.FLOW_INDEX_KEY, *dangling)
        size = self.redis.zcard(self.FLOW_INDEX_KEY)
        if size and size > self.max_entries:
            oldest = self.redis.zrange(self.FLOW_INDEX_KEY, 0, size - self.max_entries - 1) or []
            pipe = self.redis.pipeline()
            for member in oldest:
                state = _decode(member)
                pipe.delete(self.FLOW_KEY_PREFIX + state)
                pipe.zrem(self.FLOW_INDEX_KEY, state)
            pipe.execute()

    def size(self) -> int:
        return int(self.redis.zcard(self.FLOW_INDEX_KEY) or 0)


def _decode(member) -> str:
    return member.decode() if isinstance(member, bytes) else member
