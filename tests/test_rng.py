"""Tests for liminal_transit.rng: seed hashing, Mulberry32 stream, pick/chance."""

import pytest

from liminal_transit.rng import (
    EmptyCollectionError,
    SeededRNG,
    chance,
    draw_range,
    hash_seed,
    pick,
)


# ── hash_seed ───────────────────────────────────────────────


def test_hash_empty_string_is_offset_basis():
    assert hash_seed("") == 0x811C9DC5


def test_hash_known_vectors():
    assert hash_seed("a") == 0xE40C292C
    assert hash_seed("foobar") == 0xBF9CF968


def test_hash_is_stable():
    assert hash_seed("abc") == hash_seed("abc")


def test_hash_distinguishes_close_seeds():
    assert hash_seed("abc") != hash_seed("abd")


def test_hash_fits_in_32_bits():
    for seed in ["", "test-seed", "ünïcödé", "x" * 500]:
        assert 0 <= hash_seed(seed) <= 0xFFFFFFFF


# ── SeededRNG ───────────────────────────────────────────────


def test_same_seed_same_stream():
    a = SeededRNG.from_seed("test-seed")
    b = SeededRNG.from_seed("test-seed")
    assert [a() for _ in range(50)] == [b() for _ in range(50)]


def test_different_seeds_diverge():
    a = SeededRNG.from_seed("abc")
    b = SeededRNG.from_seed("abd")
    assert [a() for _ in range(5)] != [b() for _ in range(5)]


def test_draws_in_unit_interval():
    rng = SeededRNG.from_seed("range")
    for _ in range(1000):
        value = rng()
        assert 0.0 <= value < 1.0


def test_state_restores_stream_midway():
    rng = SeededRNG.from_seed("resume")
    for _ in range(7):
        rng()
    saved = rng.state
    expected = [rng() for _ in range(10)]

    restored = SeededRNG(saved)
    assert [restored() for _ in range(10)] == expected


def test_state_masked_to_32_bits():
    rng = SeededRNG(2**40 + 5)
    assert rng.state == 5


def test_state_advances_each_draw():
    rng = SeededRNG(0)
    rng()
    assert rng.state == 0x6D2B79F5


# ── pick / chance / draw_range ──────────────────────────────


def test_pick_empty_raises():
    with pytest.raises(EmptyCollectionError):
        pick(SeededRNG(1), [])


def test_empty_collection_error_is_value_error():
    assert issubclass(EmptyCollectionError, ValueError)


def test_pick_returns_member():
    rng = SeededRNG.from_seed("pick")
    items = ["a", "b", "c"]
    for _ in range(100):
        assert pick(rng, items) in items


def test_pick_single_item():
    assert pick(SeededRNG(42), ["only"]) == "only"


def test_pick_consumes_one_draw():
    a = SeededRNG(99)
    b = SeededRNG(99)
    pick(a, [1, 2, 3])
    b()
    assert a.state == b.state


def test_chance_bounds():
    rng = SeededRNG.from_seed("chance")
    assert not any(chance(rng, 0.0) for _ in range(100))
    assert all(chance(rng, 1.0) for _ in range(100))


def test_draw_range_bounds_and_rounding():
    rng = SeededRNG.from_seed("draw")
    for _ in range(200):
        value = draw_range(rng, 0.4, 0.3)
        assert 0.4 <= value <= 0.7
        assert value == round(value, 2)
