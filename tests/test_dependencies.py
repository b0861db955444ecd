import asyncio

import pytest
from fastapi import HTTPException, status
from fastapi.testclient import TestClient
from redis.exceptions import ConnectionError as RedisConnectionError

from dependencies import parse_int_filter, rate_limit
from main import create_application


class FakeRedis:
    def __init__(self, fail: bool = False):
        self.counters = {}
        self.expiries = {}
        self.fail = fail

    async def incr(self, key):
        if self.fail:
            raise RedisConnectionError("connection refused")
        self.counters[key] = self.counters.get(key, 0) + 1
        return self.counters[key]

    async def expire(self, key, seconds):
        self.expiries[key] = seconds

    async def ping(self):
        return True

    async def aclose(self):
        pass


@pytest.mark.parametrize("value, expected", [
    (None, None),
    ("", None),
    ("abc", None),
    ("0", None),
    ("3", 3),
    (" 42", 42),
    ("3rooms", 3),
    ("12.9", 12),
    ("-5", -5),
])
def test_parse_int_filter(value, expected):
    assert parse_int_filter(value) == expected

def test_rate_limit_blocks_after_limit():
    redis = FakeRedis()

    async def hit():
        await rate_limit(redis, "posts:u1", limit=2, window=86400)

    asyncio.run(hit())
    asyncio.run(hit())
    with pytest.raises(HTTPException) as exc_info:
        asyncio.run(hit())
    assert exc_info.value.status_code == status.HTTP_429_TOO_MANY_REQUESTS
    assert list(redis.expiries.values()) == [86400]

def test_rate_limit_fails_open():
    asyncio.run(rate_limit(FakeRedis(fail=True), "posts:u1", limit=0))

def test_post_creation_rate_limited(settings, db_session, owner, token_for):
    limited = settings.model_copy(update={"RATE_LIMIT_ENABLED": True, "POSTS_PER_MINUTE": 1})
    app = create_application(limited)
    # share the tables created for the fixture app
    app.state.engine = db_session.get_bind()

    with TestClient(app) as client:
        app.state.redis = FakeRedis()
        client.cookies.set("token", token_for(owner.id))
        payload = {"title": "Flat A", "price": 1000, "images": ["a.jpg"], "address": "1 Main St", "bedroom": 2}

        assert client.post("/posts", json=payload).status_code == status.HTTP_201_CREATED
        response = client.post("/posts", json=payload)
        assert response.status_code == status.HTTP_429_TOO_MANY_REQUESTS
        assert response.json() == {"message": "Too many requests"}
