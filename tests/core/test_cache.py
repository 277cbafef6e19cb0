import pytest
from pyv_cachesim.config import CacheLevelConfig, ConfigurationError
from pyv_cachesim.core.cache import CacheLevel, CacheSet, decode_address


def line_states(level: CacheLevel):
    return [(l.tag, l.valid, l.recency) for s in level.sets for l in s.lines]


@pytest.fixture
def level():
    # 1KB, 2-way, 64B lines -> 8 sets
    return CacheLevel(CacheLevelConfig(name="T", size_bytes=1024, associativity=2, line_size_bytes=64))


def test_decode_address():
    """Set index and tag come from the block number of the address."""
    # 0x12C0 = 4800 -> block 75 -> set 75 % 8 = 3, tag 75 // 8 = 9
    assert decode_address(0x12C0, 64, 8) == (3, 9)
    # Offsets inside the line do not change the result
    assert decode_address(0x12FF, 64, 8) == (3, 9)
    assert decode_address(0, 64, 8) == (0, 0)


def test_decode_depends_on_level_geometry():
    """The same address decodes differently for different line sizes."""
    assert decode_address(0x1040, 64, 64) == (1, 1)
    assert decode_address(0x1040, 128, 64) == (32, 0)


def test_level_geometry(level):
    assert level.num_sets == 8
    assert len(level.sets) == 8
    assert all(len(s.lines) == 2 for s in level.sets)
    assert level.num_sets * level.associativity * level.line_size_bytes == level.size_bytes
    assert level.policy_name == "LRU"


def test_inexact_geometry_is_rejected():
    config = CacheLevelConfig(name="Bad", size_bytes=1000, associativity=8, line_size_bytes=64)
    with pytest.raises(ConfigurationError, match="not a multiple"):
        CacheLevel(config)


@pytest.mark.parametrize("field, value", [("size_bytes", 0), ("associativity", 0), ("line_size_bytes", -64)])
def test_non_positive_geometry_is_rejected(field, value):
    config = CacheLevelConfig(name="Bad")
    setattr(config, field, value)
    with pytest.raises(ConfigurationError):
        CacheLevel(config)


@pytest.mark.parametrize("field, value", [("size_bytes", "32KB"), ("associativity", None), ("access_latency_cycles", [1])])
def test_non_integer_geometry_is_rejected(field, value):
    config = CacheLevelConfig(name="Bad")
    setattr(config, field, value)
    with pytest.raises(ConfigurationError, match=f"{field} must be an integer"):
        CacheLevel(config)


def test_numeric_strings_are_coerced():
    config = CacheLevelConfig(name="Str", size_bytes="1024", associativity="2", line_size_bytes=64.0)
    level = CacheLevel(config)
    assert (level.size_bytes, level.associativity, level.line_size_bytes) == (1024, 2, 64)
    assert level.num_sets == 8


def test_disabled_level_skips_validation():
    CacheLevelConfig(name="Off", enabled=False, size_bytes=1000).validate()


def test_install_then_query_then_flush(level):
    addr = 0x2468
    assert not level.contains(addr)

    assert level.install(addr, clock=1) is True
    assert level.contains(addr)

    assert level.flush(addr) is True
    assert not level.contains(addr)


def test_flush_of_absent_block_is_noop(level):
    level.install(0x100, clock=1)
    before = line_states(level)

    assert level.flush(0x8000) is False
    assert level.flush(0x8000) is False
    assert line_states(level) == before


def test_install_is_noop_when_present(level):
    level.install(0x40, clock=3)
    before = line_states(level)
    assert level.install(0x40, clock=9) is False
    assert line_states(level) == before


def test_no_duplicate_residency(level):
    for clock in range(1, 10):
        level.install(0x40, clock)
    index, tag = level.decode(0x40)
    matching = [l for l in level.sets[index].lines if l.valid and l.tag == tag]
    assert len(matching) == 1


def test_fill_prefers_invalid_way(level):
    # 0x0 and 0x200 share set 0 (8 sets x 64B = 512B stride)
    level.fill(0x0, clock=5)
    level.fill(0x200, clock=6)
    assert level.contains(0x0) and level.contains(0x200)

    level.flush(0x200)
    level.fill(0x400, clock=7)
    # The flushed way is reused, the older valid line survives
    assert level.contains(0x0)
    assert level.contains(0x400)


def test_invalidate_all(level):
    for addr in range(0, 1024, 64):
        level.fill(addr, clock=1)
    assert all(valid for _, valid, _ in line_states(level))
    level.invalidate_all()
    assert not any(valid for _, valid, _ in line_states(level))


def test_rebase_recency_keeps_order(level):
    level.fill(0x0, clock=40)
    level.fill(0x200, clock=55)
    level.rebase_recency(60)
    assert [r for _, valid, r in line_states(level) if valid] == [-20, -5]
    # Both survivors are now older than a fresh stamp
    index, _, way = level.probe(0x0)
    level.touch(index, way, clock=1)
    level.fill(0x400, clock=2)
    assert level.contains(0x0) and not level.contains(0x200)


def test_cache_set_find_line():
    cache_set = CacheSet(4)
    assert cache_set.find_line(7) is None
    assert cache_set.first_invalid() == 0
    cache_set.lines[2].tag = 7
    cache_set.lines[2].valid = True
    assert cache_set.find_line(7) == 2
    # An invalid line never matches, whatever tag it carries
    cache_set.lines[2].valid = False
    assert cache_set.find_line(7) is None
