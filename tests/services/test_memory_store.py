# tests/services/test_memory_store.py
"""Tests for the in-process credential store."""

import asyncio
from concurrent.futures import ThreadPoolExecutor

from steam_oidc.schemas import AuthorizationCode
from steam_oidc.services.storage import MemoryCredentialStore
from tests.helpers import FakeClock, make_code, make_token


class TestAuthorizationCodes:
    async def test_save_then_get(self, store):
        code = make_code()
        await store.save_auth_code(code)
        assert await store.get_auth_code("code-1") == code
        # get does not consume
        assert await store.get_auth_code("code-1") == code

    async def test_consume_is_single_use(self, store):
        await store.save_auth_code(make_code())
        assert (await store.consume_auth_code("code-1")) is not None
        assert await store.consume_auth_code("code-1") is None
        assert await store.get_auth_code("code-1") is None

    async def test_unknown_code(self, store):
        assert await store.get_auth_code("missing") is None
        assert await store.consume_auth_code("missing") is None

    async def test_concurrent_consumers_get_one_record(self, store):
        await store.save_auth_code(make_code())
        results = await asyncio.gather(*(store.consume_auth_code("code-1") for _ in range(25)))
        assert sum(result is not None for result in results) == 1

    async def test_consumers_on_other_threads_get_one_record(self, store):
        await store.save_auth_code(make_code())

        def consume() -> AuthorizationCode | None:
            return asyncio.run(store.consume_auth_code("code-1"))

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda _: consume(), range(16)))
        assert sum(result is not None for result in results) == 1

    async def test_already_expired_code_is_not_written(self, store):
        await store.save_auth_code(make_code(ttl=-1))
        assert store.pending_auth_codes == 0
        assert await store.get_auth_code("code-1") is None

    async def test_timer_reclaims_expired_code(self, store):
        await store.save_auth_code(make_code(ttl=0.05))
        assert store.pending_auth_codes == 1
        await asyncio.sleep(0.2)
        assert store.pending_auth_codes == 0

    async def test_expired_code_is_never_returned(self):
        clock = FakeClock()
        store = MemoryCredentialStore(clock=clock)
        await store.save_auth_code(make_code(now=clock()))
        clock.advance(300)
        assert await store.get_auth_code("code-1") is None
        assert await store.consume_auth_code("code-1") is None
        assert store.pending_auth_codes == 0

    async def test_rewrite_replaces_record_and_timer(self, store):
        await store.save_auth_code(make_code(ttl=0.05))
        replacement = make_code(ttl=300).model_copy(update={"nonce": "second"})
        await store.save_auth_code(replacement)
        await asyncio.sleep(0.2)
        stored = await store.get_auth_code("code-1")
        assert stored is not None
        assert stored.nonce == "second"

    async def test_expired_rewrite_removes_live_record(self, store):
        await store.save_auth_code(make_code(ttl=300))
        await store.save_auth_code(make_code(ttl=-1))
        assert await store.get_auth_code("code-1") is None
        assert store.pending_auth_codes == 0

    async def test_delete_is_idempotent(self, store):
        await store.save_auth_code(make_code())
        await store.delete_auth_code("code-1")
        await store.delete_auth_code("code-1")
        assert await store.get_auth_code("code-1") is None


class TestAccessTokens:
    async def test_tokens_can_be_read_repeatedly(self, store):
        token = make_token()
        await store.save_access_token(token)
        assert await store.get_access_token("token-1") == token
        assert await store.get_access_token("token-1") == token
        assert store.active_access_tokens == 1

    async def test_delete_token(self, store):
        await store.save_access_token(make_token())
        await store.delete_access_token("token-1")
        await store.delete_access_token("token-1")
        assert await store.get_access_token("token-1") is None

    async def test_expired_token_is_never_returned(self):
        clock = FakeClock()
        store = MemoryCredentialStore(clock=clock)
        await store.save_access_token(make_token(ttl=60, now=clock()))
        clock.advance(59)
        assert await store.get_access_token("token-1") is not None
        clock.advance(1)
        assert await store.get_access_token("token-1") is None

    async def test_codes_and_tokens_do_not_collide(self, store):
        await store.save_auth_code(make_code(code="shared"))
        await store.save_access_token(make_token(token="shared"))
        await store.delete_access_token("shared")
        assert await store.get_auth_code("shared") is not None


async def test_close_drops_everything(store):
    await store.save_auth_code(make_code())
    await store.save_access_token(make_token())
    await store.close()
    assert store.pending_auth_codes == 0
    assert store.active_access_tokens == 0

