"""
Tests for context fragments and their TTL cache.
"""

import pytest

from daedalus_agent.fragments import (
    FileFragment,
    Section,
    StaticFragment,
    SystemPrefix,
    SystemSuffix,
    TurnInputFragment,
    parse_ttl,
)
from daedalus_agent.turn import TurnContext

from conftest import CountingFragment


@pytest.mark.parametrize(
    "value, expected",
    [
        ("0", 0),
        ("500", 500),
        ("500ms", 500),
        ("30s", 30_000),
        ("5m", 300_000),
        ("2h", 7_200_000),
        ("1d", 86_400_000),
        ("1w", 604_800_000),
        ("5 minutes", 300_000),
        ("1.5h", 5_400_000),
        (250, 250),
    ],
)
def test_parse_ttl(value, expected):
    """Test duration strings are converted to milliseconds."""
    assert parse_ttl(value) == expected


@pytest.mark.parametrize("value", ["", "soon", "5 parsecs", "m5", "x" * 101])
def test_parse_ttl_invalid(value):
    """Test unparseable durations return None."""
    assert parse_ttl(value) is None


def test_invalid_ttl_defaults_to_always_expired():
    """Test a bad TTL string degrades to 0 instead of failing."""
    fragment = CountingFragment("bad", ttl="whenever")
    assert fragment.ttl_millis == 0


@pytest.mark.asyncio
async def test_first_access_gathers(clock):
    """Test content is gathered lazily on first access."""
    fragment = CountingFragment("a", "hello", ttl="1m", clock=clock)
    assert fragment.content is None
    assert fragment.gather_count == 0

    snapshot = await fragment.get_data()

    assert fragment.gather_count == 1
    assert snapshot.key == "a"
    assert snapshot.content == "hello"
    assert snapshot.char_count == 5
    assert snapshot.token_count is None
    assert snapshot.section == Section.BODY


@pytest.mark.asyncio
async def test_ttl_serves_cache_until_expiry(clock):
    """Test a fragment regathers exactly once per TTL window."""
    fragment = CountingFragment("a", "hello", ttl=1000, clock=clock)

    await fragment.get_data()
    clock.advance(500)
    await fragment.get_data()
    clock.advance(499)
    await fragment.get_data()
    assert fragment.gather_count == 1

    clock.advance(1)
    await fragment.get_data()
    assert fragment.gather_count == 2

    clock.advance(999)
    await fragment.get_data()
    assert fragment.gather_count == 2


@pytest.mark.asyncio
@pytest.mark.parametrize("ttl", [0, "0", -5])
async def test_non_positive_ttl_always_regathers(clock, ttl):
    """Test ttl <= 0 regathers on every access."""
    fragment = CountingFragment("a", "hello", ttl=ttl, clock=clock)

    for _ in range(3):
        await fragment.get_data()

    assert fragment.gather_count == 3
    assert fragment.expires_at == 0


@pytest.mark.asyncio
async def test_revalidate_forces_regather(clock):
    """Test revalidate bypasses a fresh cache."""
    fragment = CountingFragment("a", "hello", ttl="1h", clock=clock)

    await fragment.get_data()
    await fragment.get_data(revalidate=True)

    assert fragment.gather_count == 2


@pytest.mark.asyncio
async def test_invalidate_forces_regather(clock):
    """Test invalidate() expires the cache."""
    fragment = CountingFragment("a", "hello", ttl="1h", clock=clock)

    await fragment.get_data()
    fragment.invalidate()
    await fragment.get_data()

    assert fragment.gather_count == 2


@pytest.mark.asyncio
async def test_gather_failure_keeps_previous_content(clock):
    """Test a failing gather propagates and leaves the cache untouched."""
    fragment = CountingFragment("a", "first", ttl=1000, clock=clock)
    await fragment.get_data()
    expires_at = fragment.expires_at

    async def broken(turn):
        raise RuntimeError("source unavailable")

    fragment.gather = broken
    clock.advance(2000)

    with pytest.raises(RuntimeError, match="source unavailable"):
        await fragment.get_data()

    assert fragment.content == "first"
    assert fragment.expires_at == expires_at


@pytest.mark.asyncio
async def test_gather_receives_turn_context():
    """Test the turn context is passed explicitly to gather."""
    fragment = CountingFragment("a", "hello")
    turn = TurnContext(input="hi there")

    await fragment.get_data(turn=turn)

    assert fragment.seen_turns == [turn]


@pytest.mark.asyncio
async def test_turn_input_fragment():
    """Test the turn input fragment surfaces string input with its prefix."""
    fragment = TurnInputFragment(prefix="User says: ")

    snapshot = await fragment.get_data(turn=TurnContext(input="Hello"))

    assert snapshot.content == "User says: Hello"
    assert snapshot.section == Section.BODY
    assert fragment.ttl_millis == 0


@pytest.mark.asyncio
async def test_turn_input_fragment_missing_or_non_string():
    """Test missing or non-string input yields empty content."""
    fragment = TurnInputFragment()

    assert (await fragment.get_data(turn=TurnContext())).content == ""
    assert (await fragment.get_data(turn=TurnContext(input={"a": 1}))).content == ""


@pytest.mark.asyncio
async def test_static_fragments():
    """Test static fragments and prefix/suffix pinning."""
    static = StaticFragment("note", "Remember the milk", section="preamble")
    prefix = SystemPrefix("You are helpful.")
    suffix = SystemSuffix("Be brief.")

    assert (await static.get_data()).content == "Remember the milk"
    assert static.section == Section.PREAMBLE
    assert prefix.order == float("-inf")
    assert suffix.order == float("inf")
    assert prefix.section == suffix.section == Section.PREAMBLE
    assert (await prefix.get_data()).content == "You are helpful."


@pytest.mark.asyncio
async def test_file_fragment(tmp_path):
    """Test a file fragment reads its file and falls back when missing."""
    path = tmp_path / "persona.md"
    path.write_text("  I am a careful assistant.\n")

    fragment = FileFragment("persona", path)
    assert (await fragment.get_data()).content == "I am a careful assistant."
    assert fragment.ttl_millis == 300_000

    missing = FileFragment("missing", tmp_path / "nope.md", default="fallback")
    assert (await missing.get_data()).content == "fallback"
