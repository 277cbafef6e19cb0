import pytest
from pyv_cachesim.config import SimConfig, CacheLevelConfig
from pyv_cachesim.core.hierarchy import CacheHierarchy


@pytest.fixture
def l1_only_config():
    """Default L1 (32KB, 8-way, 64B, 1 cycle) in front of 100-cycle memory."""
    config = SimConfig(seed=1234)
    config.l2.enabled = False
    config.l3.enabled = False
    config.l4.enabled = False
    return config


@pytest.fixture
def small_config():
    """Tiny levels so that conflicts and evictions are easy to provoke."""
    return SimConfig(
        l1=CacheLevelConfig(name="L1", size_bytes=256, associativity=2, line_size_bytes=64,
                            access_latency_cycles=1),     # 2 sets
        l2=CacheLevelConfig(name="L2", size_bytes=1024, associativity=4, line_size_bytes=64,
                            access_latency_cycles=10),    # 4 sets
        l3=CacheLevelConfig(name="L3", size_bytes=4096, associativity=4, line_size_bytes=128,
                            access_latency_cycles=20),    # 8 sets
        l4=CacheLevelConfig(name="L4", enabled=False, size_bytes=8192, associativity=8,
                            line_size_bytes=128, access_latency_cycles=40),  # 8 sets
        mem_latency_cycles=100,
        seed=7,
    )


@pytest.fixture
def hierarchy(small_config):
    return CacheHierarchy.from_config(small_config)
