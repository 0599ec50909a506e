import random
import threading
from collections import deque

from os_core.config import SimulationConfig
from os_core.memory_manager import MemorySystem, OutOfMemory
from os_core.stats import ERROR

# Per-tick events
CREATE = 'create'
TERMINATE = 'terminate'
ACCESS = 'access'


class SimulationScheduler:
    """Discrete clock driving a MemorySystem one simulated second per tick.

    Every CREATE_INTERVAL seconds a process is created. From EVENT_START on,
    every EVENT_INTERVAL seconds a random process is terminated and, strictly
    after that, a random page is accessed.
    """
    CREATE_INTERVAL = 2
    EVENT_START = 30
    EVENT_INTERVAL = 5

    def __init__(self, config=None, seed=None, logger=None):
        self.config = config if config is not None else SimulationConfig()
        self.seed = seed
        self.logger = logger
        self.lock = threading.Lock()
        self.running = False
        self.paused = False
        self.halted = False
        self._initialize()

    def _initialize(self):
        """Discards all state and rebuilds it from the current config and seed."""
        self.rng = random.Random(self.seed)
        self.system = MemorySystem.from_config(self.config, rng=self.rng, logger=self.logger)
        self.last_process_create = 0
        self.last_event = 0

    @property
    def clock(self):
        return self.system.clock

    # Controls
    def start(self):
        if not self.running:
            self._initialize()
        self.running = True
        self.paused = False
        self.halted = False

    def toggle_pause(self):
        if self.running:
            self.paused = not self.paused
        return self.paused

    def reset(self, config=None):
        if config is not None:
            self.config = config
        self.running = False
        self.paused = False
        self.halted = False
        self._initialize()

    def _halt(self):
        self.running = False
        self.paused = False
        self.halted = True
        self.system.log.add(self.system.clock, "Simulation stopped: out of memory.", ERROR)

    # Ticks
    def tick(self):
        """Processes one tick. Returns False without touching state when not running or paused."""
        if not self.running or self.paused:
            return False

        now = self.system.advance_clock()
        events = deque()
        if now - self.last_process_create >= self.CREATE_INTERVAL:
            events.append(CREATE)
            self.last_process_create = now
        if now >= self.EVENT_START and now - self.last_event >= self.EVENT_INTERVAL:
            events.append(TERMINATE)
            self.last_event = now

        while events:
            event = events.popleft()
            if event == CREATE:
                try:
                    self.system.create_process()
                except OutOfMemory:
                    self._halt()
            elif event == TERMINATE:
                self.system.terminate_process()
                # The access must observe the state left by the termination
                events.append(ACCESS)
            elif event == ACCESS:
                self.system.access_random_page()
        return True

    def run_ticks(self, count):
        """Runs up to `count` ticks, stopping early once halted or paused. Returns the ticks processed."""
        done = 0
        for _ in range(count):
            if not self.tick():
                break
            done += 1
        return done

    def snapshot(self, log_tail=20):
        snap = self.system.snapshot(log_tail)
        snap.update({'running': self.running, 'paused': self.paused, 'halted': self.halted})
        return snap


class RealTimeRunner:
    """Background thread ticking a scheduler once per `interval` seconds of wall-clock time."""

    def __init__(self, scheduler, interval=1.0):
        self.scheduler = scheduler
        self.interval = interval
        self._stop = threading.Event()
        self._thread = None

    def start(self):
        if self.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="SimulationTicker", daemon=True)
        self._thread.start()

    def _run(self):
        while not self._stop.wait(self.interval):
            with self.scheduler.lock:
                self.scheduler.tick()

    def stop(self, timeout=None):
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
        self._thread = None

    def is_alive(self):
        return self._thread is not None and self._thread.is_alive()

    def snapshot(self, log_tail=20):
        with self.scheduler.lock:
            return self.scheduler.snapshot(log_tail)
