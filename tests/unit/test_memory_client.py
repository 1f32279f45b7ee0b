from __future__ import annotations

import anyio
import pytest
from pydantic import BaseModel, ValidationError

from kvstate.etag import ETag, NO_ETAG
from kvstate.memory import InMemoryStateClient


pytestmark = pytest.mark.anyio


async def test_save_then_read_returns_value_and_etag():
    client = InMemoryStateClient()

    await client.save_state("k", {"a": 1})
    value, etag = await client.get_state_and_etag("k")

    assert value == {"a": 1}
    assert etag.has_value


async def test_conditional_save_with_current_etag_rotates_etag():
    client = InMemoryStateClient()
    await client.save_state("k", "v1")
    _, etag1 = await client.get_state_and_etag("k")

    await client.save_state("k", "v2", etag1)

    value, etag2 = await client.get_state_and_etag("k")
    assert value == "v2"
    assert etag2.has_value
    assert etag2 != etag1


async def test_conditional_save_with_stale_etag_is_silently_ignored():
    client = InMemoryStateClient()
    await client.save_state("k", "v1")
    _, etag1 = await client.get_state_and_etag("k")

    await client.save_state("k", "v2", ETag("bogus"))

    assert await client.get_state_and_etag("k") == ("v1", etag1)


async def test_delete_missing_key_is_not_an_error():
    client = InMemoryStateClient()
    await client.delete_state("missing")
    await client.delete_state("missing", ETag("whatever"))
    assert client.state == {}


async def test_delete_with_stale_etag_leaves_entry():
    client = InMemoryStateClient()
    await client.save_state("k", "v1")

    await client.delete_state("k", ETag("bogus"))

    assert await client.get_state("k") == "v1"


async def test_unconditional_delete_removes_entry():
    client = InMemoryStateClient()
    await client.save_state("k", "v1")

    await client.delete_state("k")

    assert "k" not in client.state


async def test_missing_key_returns_default():
    client = InMemoryStateClient()

    assert await client.get_state("never") is None
    assert await client.get_state("never", default=0) == 0
    assert await client.get_state_and_etag("never") == (None, NO_ETAG)


async def test_etag_against_missing_key_writes_value():
    # A present ETag with nothing stored counts as a match; the ETag is kept
    client = InMemoryStateClient()

    await client.save_state("k", "v1", ETag("caller-supplied"))

    assert await client.get_state_and_etag("k") == ("v1", ETag("caller-supplied"))


async def test_seeded_state_is_visible():
    client = InMemoryStateClient({"k": ("seed", ETag("1"))})

    await client.save_state("k", "next", ETag("1"))

    value, etag = client.state["k"]
    assert value == "next"
    assert etag != ETag("1")


@pytest.mark.parametrize("op", ["get", "save", "delete"])
async def test_empty_key_rejected(op):
    client = InMemoryStateClient()
    with pytest.raises(ValueError):
        if op == "get":
            await client.get_state("")
        elif op == "save":
            await client.save_state("", 1)
        else:
            await client.delete_state("")


async def test_writers_sharing_an_etag_only_first_applies():
    client = InMemoryStateClient()
    await client.save_state("counter", 0)
    _, etag = await client.get_state_and_etag("counter")

    async def bump(n: int) -> None:
        await client.save_state("counter", n, etag)

    async with anyio.create_task_group() as tg:
        for n in range(1, 6):
            tg.start_soon(bump, n)

    value, final = await client.get_state_and_etag("counter")
    # First writer matched and rotated the ETag; the rest were dropped
    assert value in {1, 2, 3, 4, 5}
    assert final != etag


async def test_operations_wait_for_the_lock():
    client = InMemoryStateClient()

    held = anyio.Event()
    release = anyio.Event()

    async def hold_lock() -> None:
        async with client._lock:
            held.set()
            await release.wait()

    async with anyio.create_task_group() as tg:
        tg.start_soon(hold_lock)
        await held.wait()
        with anyio.move_on_after(0.05) as scope:
            await client.save_state("k", 1)
        release.set()

    assert scope.cancelled_caught
    assert "k" not in client.state


async def test_stored_value_is_not_shared_with_callers():
    client = InMemoryStateClient()
    original = {"n": 1}
    await client.save_state("k", original)
    original["n"] = 50

    entry = await client.get_state_entry("k")
    entry.value["n"] = 99  # mutated locally, never saved

    value, etag = await client.get_state_and_etag("k")
    assert value == {"n": 1}
    assert etag == entry.etag


class Widget(BaseModel):
    name: str
    count: int = 0


async def test_reads_validate_against_type():
    client = InMemoryStateClient()
    await client.save_state("w", {"name": "gear"})
    await client.save_state("m", Widget(name="cog", count=2))

    got = await client.get_state("w", type_=Widget)
    assert isinstance(got, Widget)
    assert got == Widget(name="gear")

    # Models are kept in JSON form, as they would be on the wire
    assert client.state["m"][0] == {"name": "cog", "count": 2}
    assert await client.get_state("m", type_=Widget) == Widget(name="cog", count=2)


async def test_read_with_mismatched_type_raises():
    client = InMemoryStateClient()
    await client.save_state("w", {"name": "gear"})

    with pytest.raises(ValidationError):
        await client.get_state("w", type_=int)


async def test_scenario_write_conflict_delete():
    client = InMemoryStateClient()

    await client.save_state("x", {"a": 1})
    value, etag = await client.get_state_and_etag("x")
    assert value == {"a": 1}
    assert etag.has_value

    await client.save_state("x", {"a": 2}, ETag("not-the-real-one"))
    assert await client.get_state("x") == {"a": 1}

    await client.delete_state("x", etag)
    assert await client.get_state("x") is None
