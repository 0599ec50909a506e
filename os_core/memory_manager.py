import math
import random

from os_core.config import DEFAULT_MAX_PROCESS_MB, DEFAULT_MIN_PROCESS_MB
from os_core.frame_pool import RAM, SWAP, FramePool
from os_core.process import PageTableEntry, Process, pages_for
from os_core.stats import ERROR, INFO, SUCCESS, WARNING, EventLog, Statistics

# Outcomes of a memory access
HIT = 'hit'
PAGE_FAULT_RESOLVED = 'page_fault_resolved'
SWAP_EXHAUSTED = 'swap_exhausted'
NO_VICTIM = 'no_victim'
NO_PROCESS = 'no_process'


class MemorySystemError(Exception):
    pass


class OutOfMemory(MemorySystemError):
    def __init__(self, pid, pages_required, pages_free):
        self.pid = pid
        self.pages_required = pages_required
        self.pages_free = pages_free
        super().__init__(
            f"Not enough memory for process P{pid} (needs {pages_required} pages, {pages_free} free)")


class SwapExhausted(MemorySystemError):
    def __init__(self, victim_pid, victim_vpage, pid, vpage):
        self.victim_pid = victim_pid
        self.victim_vpage = victim_vpage
        self.pid = pid
        self.vpage = vpage
        super().__init__(
            f"No free SWAP frame to evict P{victim_pid} page {victim_vpage}; "
            f"page {vpage} of P{pid} stays in SWAP")


class MemorySystem:
    """RAM and SWAP frame pools plus the processes whose pages live in them.

    Pages are placed into RAM first and spill into SWAP. An access to a page
    held in SWAP evicts the lowest-indexed occupied RAM frame (FIFO by frame
    index) into a free SWAP frame and loads the requested page in its place.
    """

    def __init__(self, ram_frames, swap_frames, page_size=4096, rng=None, logger=None,
                 min_process_size_mb=DEFAULT_MIN_PROCESS_MB, max_process_size_mb=DEFAULT_MAX_PROCESS_MB,
                 virtual_mem_mb=None):
        self.page_size = page_size
        self.ram = FramePool(RAM, ram_frames)
        self.swap = FramePool(SWAP, swap_frames)
        self.rng = rng if rng is not None else random.Random()
        self.min_process_size_mb = min_process_size_mb
        self.max_process_size_mb = max_process_size_mb
        self.virtual_mem_mb = virtual_mem_mb

        self.processes = {}  # pid -> Process, in creation order
        self.clock = 0
        self.next_pid = 1
        self.stats = Statistics()
        self.log = EventLog(logger)

    @classmethod
    def from_config(cls, config, rng=None, logger=None):
        """Builds pools sized from a validated SimulationConfig, sampling the virtual memory size."""
        config.validate()
        rng = rng if rng is not None else random.Random()
        virtual_mem_mb = config.sample_virtual_mem_mb(rng)
        system = cls(config.ram_frames(), config.swap_frames(virtual_mem_mb),
                     page_size=config.page_size_bytes, rng=rng, logger=logger,
                     min_process_size_mb=config.min_process_size_mb,
                     max_process_size_mb=config.max_process_size_mb,
                     virtual_mem_mb=virtual_mem_mb)
        system._log(f"Simulation initialized: RAM={config.physical_mem_mb}MB, Virtual={virtual_mem_mb}MB, "
                    f"Page={config.page_size_kb}KB ({system.ram.capacity} RAM frames, "
                    f"{system.swap.capacity} SWAP frames)", SUCCESS)
        return system

    def _log(self, message, level=INFO):
        return self.log.add(self.clock, message, level)

    def advance_clock(self, seconds=1):
        self.clock += seconds
        return self.clock

    # ------------------------------------------------------------------
    # Allocation
    # ------------------------------------------------------------------
    def sample_process_size(self, min_size_mb=None, max_size_mb=None):
        """Uniform size in [min, max) MB, floored to whole KB, in bytes."""
        min_size_mb = self.min_process_size_mb if min_size_mb is None else min_size_mb
        max_size_mb = self.max_process_size_mb if max_size_mb is None else max_size_mb
        size_mb = min_size_mb + self.rng.random() * (max_size_mb - min_size_mb)
        return math.floor(size_mb * 1024) * 1024

    def create_process(self, min_size_mb=None, max_size_mb=None, size_bytes=None):
        """Places every page of a new process, RAM first then SWAP.

        Raises OutOfMemory, leaving pools and the process set untouched, when
        the page count exceeds the free frames of both pools together.
        """
        if size_bytes is None:
            size_bytes = self.sample_process_size(min_size_mb, max_size_mb)
        pages_needed = pages_for(size_bytes, self.page_size)
        pid = self.next_pid

        free_total = self.ram.free_count() + self.swap.free_count()
        if pages_needed > free_total:
            self._log(f"Not enough memory for process P{pid} (needs {pages_needed} pages, "
                      f"{free_total} free)", ERROR)
            raise OutOfMemory(pid, pages_needed, free_total)

        page_table = []
        ram_free = self.ram.free_count()
        cursors = {RAM: 0, SWAP: 0}
        for vpage in range(pages_needed):
            if ram_free > 0:
                pool = self.ram
                ram_free -= 1
            else:
                pool = self.swap
            frame_idx = pool.find_free_frame(cursors[pool.name])
            cursors[pool.name] = frame_idx + 1
            pool.occupy(frame_idx, pid, vpage)
            page_table.append(PageTableEntry(vpage, frame_idx, pool.name))

        self.next_pid += 1
        process = Process(pid, size_bytes, self.page_size, page_table)
        process.state = 'READY'
        self.processes[pid] = process
        self.stats.record_created()
        self._log(f"Process P{pid} created: {process.size_kb}KB ({pages_needed} pages, "
                  f"{process.pages_in(RAM)} in RAM, {process.pages_in(SWAP)} in SWAP)", SUCCESS)
        return process

    def terminate_process(self, pid=None):
        """Frees every frame of one process (random when pid is None). Returns it, or None if nothing runs."""
        if not self.processes:
            return None
        if pid is None:
            pid = self.rng.choice(list(self.processes))
        process = self.processes[pid]

        for pte in process.page_table:
            pool = self.ram if pte.in_ram else self.swap
            pool.release(pte.physical_index)

        del self.processes[pid]
        process.state = 'TERMINATED'
        self.stats.record_finished()
        self._log(f"Process P{pid} finished (freed {process.num_pages} pages)", INFO)
        return process

    # ------------------------------------------------------------------
    # Access and page faults
    # ------------------------------------------------------------------
    def access_random_page(self):
        """Accesses a random page of a random active process. Returns the access outcome."""
        if not self.processes:
            return NO_PROCESS
        process = self.processes[self.rng.choice(list(self.processes))]
        if process.num_pages == 0:
            return NO_PROCESS
        vpage = self.rng.randrange(process.num_pages)
        return self.access_page(process.pid, vpage)

    def access_page(self, pid, vpage, offset=None):
        process = self.processes[pid]
        pte = process.entry(vpage)
        if offset is None:
            offset = self.rng.randrange(self.page_size)
        virtual_address = vpage * self.page_size + offset
        self._log(f"Access to virtual address 0x{virtual_address:X} (P{pid}, page {vpage})", INFO)

        if pte.in_ram:
            self._log(f"Page {vpage} found in RAM (frame {pte.physical_index})", SUCCESS)
            return HIT

        self.stats.record_page_fault()
        self._log(f"PAGE FAULT: page {vpage} of P{pid} is in SWAP (frame {pte.physical_index})", WARNING)
        try:
            return self.handle_page_fault(process, pte)
        except SwapExhausted as e:
            self._log(f"SWAP EXHAUSTED: {e}", WARNING)
            return SWAP_EXHAUSTED

    def handle_page_fault(self, process, pte):
        """Swaps the SWAP-resident page `pte` of `process` with the FIFO victim in RAM."""
        victim_idx = self.select_victim()
        if victim_idx is None:
            self._log(f"No resident page to evict; page {pte.virtual_page} of P{process.pid} stays in SWAP", WARNING)
            return NO_VICTIM

        victim = self.ram.get(victim_idx)
        victim_pte = self.processes[victim['pid']].page_table[victim['vpage']]

        swap_idx = self.swap.find_free_frame()
        if swap_idx is None:
            raise SwapExhausted(victim['pid'], victim['vpage'], process.pid, pte.virtual_page)

        old_swap_idx = pte.physical_index

        # Victim out to SWAP
        self.ram.release(victim_idx)
        self.swap.occupy(swap_idx, victim['pid'], victim['vpage'])
        victim_pte.move_to(SWAP, swap_idx)

        # Requested page into the freed RAM frame
        self.swap.release(old_swap_idx)
        self.ram.occupy(victim_idx, process.pid, pte.virtual_page)
        pte.move_to(RAM, victim_idx)

        self._log(f"Swap done: P{victim['pid']} page {victim['vpage']} -> SWAP (frame {swap_idx}), "
                  f"P{process.pid} page {pte.virtual_page} -> RAM (frame {victim_idx}) (FIFO)", WARNING)
        return PAGE_FAULT_RESOLVED

    def select_victim(self):
        """FIFO victim: the lowest-indexed occupied RAM frame."""
        return self.ram.find_occupied_frame()

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------
    def ram_usage_percent(self):
        return self.ram.usage_percent()

    def swap_usage_percent(self):
        return self.swap.usage_percent()

    def find_inconsistencies(self):
        """Lists every frame/page-table mismatch; an empty list means the state is consistent."""
        problems = []
        seen = set()
        for pid, process in self.processes.items():
            if len(process.page_table) != process.num_pages:
                problems.append(f"P{pid} has {len(process.page_table)} entries for {process.num_pages} pages")
            for vpage, pte in enumerate(process.page_table):
                pool = self.ram if pte.in_ram else self.swap
                key = (pool.name, pte.physical_index)
                if key in seen:
                    problems.append(f"{pool.name} frame {pte.physical_index} is referenced twice")
                seen.add(key)
                if pte.virtual_page != vpage:
                    problems.append(f"P{pid} entry {vpage} is numbered {pte.virtual_page}")
                if not 0 <= pte.physical_index < pool.capacity:
                    problems.append(f"P{pid} page {vpage} points outside {pool.name}")
                elif pool.get(pte.physical_index) != {'pid': pid, 'vpage': vpage}:
                    problems.append(f"{pool.name} frame {pte.physical_index} does not hold P{pid} page {vpage}")

        for pool in (self.ram, self.swap):
            for idx, frame in enumerate(pool.frames):
                if frame is not None and (pool.name, idx) not in seen:
                    problems.append(f"{pool.name} frame {idx} is held by P{frame['pid']} but unreferenced")
        return problems

    def snapshot(self, log_tail=20):
        return {
            'clock': self.clock,
            'page_size': self.page_size,
            'virtual_mem_mb': self.virtual_mem_mb,
            'ram': self.ram.get_map(),
            'swap': self.swap.get_map(),
            'processes': [process.as_dict() for process in self.processes.values()],
            'stats': self.stats.as_dict(),
            'ram_usage': self.ram_usage_percent(),
            'swap_usage': self.swap_usage_percent(),
            'log': [entry.as_dict() for entry in self.log.tail(log_tail)],
        }

    def memory_status(self):
        ram_used = self.ram.occupied_count()
        swap_used = self.swap.occupied_count()
        lines = [
            "========== MEMORY STATUS ==========",
            f"Time: {self.clock}s",
            f"RAM: {ram_used}/{self.ram.capacity} pages ({self.ram_usage_percent():.1f}%)",
            f"SWAP: {swap_used}/{self.swap.capacity} pages ({self.swap_usage_percent():.1f}%)",
            f"Active processes: {len(self.processes)}",
            f"Page faults: {self.stats.page_faults}",
            f"Processes created: {self.stats.processes_created}",
            f"Processes finished: {self.stats.processes_finished}",
            "===================================",
        ]
        return "\n".join(lines)
