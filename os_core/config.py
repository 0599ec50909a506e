import math

DEFAULT_PHYSICAL_MEM_MB = 128
DEFAULT_PAGE_SIZE_KB = 4
DEFAULT_MIN_PROCESS_MB = 4
DEFAULT_MAX_PROCESS_MB = 32

PHYSICAL_MEM_RANGE_MB = (16, 1024)
PAGE_SIZE_RANGE_KB = (1, 64)
VIRTUAL_FACTOR_RANGE = (1.5, 4.5)


class ConfigError(ValueError):
    pass


class SimulationConfig:
    """Settings a simulation run is (re)initialized from."""

    def __init__(self, physical_mem_mb=DEFAULT_PHYSICAL_MEM_MB, page_size_kb=DEFAULT_PAGE_SIZE_KB,
                 min_process_size_mb=DEFAULT_MIN_PROCESS_MB, max_process_size_mb=DEFAULT_MAX_PROCESS_MB):
        self.physical_mem_mb = physical_mem_mb
        self.page_size_kb = page_size_kb
        self.min_process_size_mb = min_process_size_mb
        self.max_process_size_mb = max_process_size_mb

    def validate(self):
        """Raises ConfigError on the first out-of-range value, returns self otherwise."""
        for name in ('physical_mem_mb', 'page_size_kb'):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise ConfigError(f"{name} must be an integer, got {value!r}")

        low, high = PHYSICAL_MEM_RANGE_MB
        if not low <= self.physical_mem_mb <= high:
            raise ConfigError(f"Physical memory must be between {low} and {high} MB (got {self.physical_mem_mb}).")
        low, high = PAGE_SIZE_RANGE_KB
        if not low <= self.page_size_kb <= high:
            raise ConfigError(f"Page size must be between {low} and {high} KB (got {self.page_size_kb}).")
        if self.min_process_size_mb <= 0 or self.max_process_size_mb <= 0:
            raise ConfigError("Process sizes must be positive.")
        if self.min_process_size_mb > self.max_process_size_mb:
            raise ConfigError(
                f"Minimum process size ({self.min_process_size_mb} MB) exceeds maximum ({self.max_process_size_mb} MB).")
        return self

    @property
    def page_size_bytes(self):
        return self.page_size_kb * 1024

    def sample_virtual_mem_mb(self, rng):
        return math.floor(self.physical_mem_mb * rng.uniform(*VIRTUAL_FACTOR_RANGE))

    def ram_frames(self):
        return (self.physical_mem_mb * 1024) // self.page_size_kb

    def swap_frames(self, virtual_mem_mb):
        return (virtual_mem_mb * 1024) // self.page_size_kb - self.ram_frames()

    def __repr__(self):
        return (f"SimulationConfig(physical_mem_mb={self.physical_mem_mb}, page_size_kb={self.page_size_kb}, "
                f"min_process_size_mb={self.min_process_size_mb}, max_process_size_mb={self.max_process_size_mb})")
