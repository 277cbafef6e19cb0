from pyv_cachesim.isa.opcode import AccessType
from pyv_cachesim.runtime.access import access
from pyv_cachesim.runtime.maintenance import (
    flush_line, flush_data, flush_instruction, invalidate, invalidate_all,
)
from pyv_cachesim.runtime.prefetch import prefetch_t0

D = AccessType.DATA
I = AccessType.INSTRUCTION


def presence(h, addr):
    return {level.name: level.contains(addr) for level in h.present_levels()}


def warm_both_l1(h, addr):
    prefetch_t0(h, addr, D)
    prefetch_t0(h, addr, I)
    assert all(presence(h, addr).values())


def test_flush_data_leaves_l1i_alone(hierarchy):
    warm_both_l1(hierarchy, 0x340)
    assert flush_data(hierarchy, 0x340) == 3
    assert presence(hierarchy, 0x340) == {"L1I": True, "L1D": False, "L2": False, "L3": False}


def test_flush_instruction_leaves_l1d_alone(hierarchy):
    warm_both_l1(hierarchy, 0x340)
    assert flush_instruction(hierarchy, 0x340) == 3
    assert presence(hierarchy, 0x340) == {"L1I": False, "L1D": True, "L2": False, "L3": False}


def test_invalidate_forgets_block_everywhere(hierarchy):
    warm_both_l1(hierarchy, 0x340)
    assert invalidate(hierarchy, 0x340) == 4
    assert not any(presence(hierarchy, 0x340).values())
    assert access(hierarchy, 0x340, D).hit_level == 0


def test_flushing_absent_block_is_noop(hierarchy):
    access(hierarchy, 0x40, D)
    before = {a: presence(hierarchy, a) for a in (0x40, 0x2000)}
    assert flush_data(hierarchy, 0x2000) == 0
    assert flush_data(hierarchy, 0x2000) == 0
    assert invalidate(hierarchy, 0x2000) == 0
    assert {a: presence(hierarchy, a) for a in (0x40, 0x2000)} == before


def test_flush_line_on_absent_level(hierarchy):
    assert flush_line(hierarchy.l4, 0x40) is False


def test_flush_only_drops_matching_block(hierarchy):
    """0x0 and 0x40 share an L3 line (128B) but not an L1/L2 line."""
    access(hierarchy, 0x0, D)
    flush_data(hierarchy, 0x40)
    assert hierarchy.l1d.contains(0x0)
    assert hierarchy.l2.contains(0x0)
    assert not hierarchy.l3.contains(0x0)


def test_invalidate_all_keeps_counters_and_forces_misses(hierarchy):
    # Distinct blocks at every level, two per L1 set
    addrs = [0x0, 0xC0, 0x1000, 0x20C0]
    hierarchy.start_counting()
    for a in addrs:
        access(hierarchy, a, D)
    for a in addrs:
        assert access(hierarchy, a, D).hit_level == 1

    counters_before = [(lvl.name, lvl.accesses, lvl.hits) for lvl in hierarchy.snapshot().levels]
    clock_before = hierarchy.clock

    invalidate_all(hierarchy)

    assert [(lvl.name, lvl.accesses, lvl.hits) for lvl in hierarchy.snapshot().levels] == counters_before
    assert hierarchy.clock == clock_before
    assert not any(line.valid for level in hierarchy.present_levels()
                   for cache_set in level.sets for line in cache_set.lines)
    for a in addrs:
        assert access(hierarchy, a, D).hit_level == 0


def test_maintenance_does_not_tick_or_count(hierarchy):
    hierarchy.start_counting()
    flush_data(hierarchy, 0x40)
    flush_instruction(hierarchy, 0x40)
    invalidate(hierarchy, 0x40)
    invalidate_all(hierarchy)
    report = hierarchy.snapshot()
    assert hierarchy.clock == 0
    assert report.total_accesses == 0
    assert report.prefetches == 0
