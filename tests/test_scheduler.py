import time
import unittest
from unittest.mock import Mock

from os_core.config import SimulationConfig
from os_core.scheduler import RealTimeRunner, SimulationScheduler


def small_config():
    # 256 RAM frames of 64KB, processes of exactly 8 pages
    return SimulationConfig(physical_mem_mb=16, page_size_kb=64, min_process_size_mb=0.5, max_process_size_mb=0.5)


class NoCreationScheduler(SimulationScheduler):
    CREATE_INTERVAL = 10_000


class TestSimulationScheduler(unittest.TestCase):

    def setUp(self):
        self.logger = Mock()
        self.scheduler = SimulationScheduler(small_config(), seed=42, logger=self.logger)

    def assertConsistent(self):
        self.assertEqual(self.scheduler.system.find_inconsistencies(), [])

    def test_initial_state(self):
        """Before start the scheduler is idle with a fresh memory system"""
        snap = self.scheduler.snapshot()
        self.assertFalse(snap['running'])
        self.assertFalse(snap['paused'])
        self.assertFalse(snap['halted'])
        self.assertEqual(snap['clock'], 0)
        self.assertEqual(snap['processes'], [])
        self.assertEqual(self.scheduler.last_process_create, 0)
        self.assertEqual(self.scheduler.last_event, 0)

    def test_tick_requires_running(self):
        """Ticks are ignored until start()"""
        self.assertFalse(self.scheduler.tick())
        self.assertEqual(self.scheduler.clock, 0)

    def test_process_created_every_two_seconds(self):
        self.scheduler.start()
        self.assertTrue(self.scheduler.tick())
        self.assertEqual(self.scheduler.clock, 1)
        self.assertEqual(len(self.scheduler.system.processes), 0)
        self.scheduler.tick()
        self.assertEqual(len(self.scheduler.system.processes), 1)
        self.assertEqual(self.scheduler.last_process_create, 2)

        self.scheduler.run_ticks(8)
        self.assertEqual(self.scheduler.clock, 10)
        self.assertEqual(self.scheduler.system.stats.processes_created, 5)
        self.assertConsistent()

    def test_no_termination_before_thirty_seconds(self):
        self.scheduler.start()
        self.scheduler.run_ticks(29)
        self.assertEqual(self.scheduler.system.stats.processes_finished, 0)
        self.assertEqual(self.scheduler.system.stats.processes_created, 14)

    def test_termination_then_access_at_thirty(self):
        """At 30s a process is created, then one terminated, then a page accessed, in that order"""
        self.scheduler.start()
        self.scheduler.run_ticks(30)
        stats = self.scheduler.system.stats
        self.assertEqual(stats.processes_created, 15)
        self.assertEqual(stats.processes_finished, 1)
        self.assertEqual(self.scheduler.last_event, 30)

        messages = [entry.message for entry in self.scheduler.system.log if entry.timestamp == 30]
        created = next(i for i, m in enumerate(messages) if "created" in m)
        finished = next(i for i, m in enumerate(messages) if "finished" in m)
        accessed = next(i for i, m in enumerate(messages) if m.startswith("Access to virtual address"))
        self.assertLess(created, finished)
        self.assertLess(finished, accessed)
        self.assertConsistent()

    def test_events_every_five_seconds(self):
        self.scheduler.start()
        self.scheduler.run_ticks(34)
        self.assertEqual(self.scheduler.system.stats.processes_finished, 1)
        self.scheduler.tick()
        self.assertEqual(self.scheduler.system.stats.processes_finished, 2)
        self.assertEqual(self.scheduler.last_event, 35)

    def test_empty_termination_at_thirty(self):
        """Reaching 30s with no processes does nothing and does not crash"""
        scheduler = NoCreationScheduler(small_config(), seed=1, logger=Mock())
        scheduler.start()
        self.assertEqual(scheduler.run_ticks(31), 31)
        self.assertEqual(scheduler.system.processes, {})
        self.assertEqual(scheduler.system.stats.as_dict(),
                         {'page_faults': 0, 'processes_created': 0, 'processes_finished': 0})
        self.assertEqual(scheduler.last_event, 30)

    def test_pause_preserves_clock_and_timers(self):
        self.scheduler.start()
        self.scheduler.run_ticks(5)
        self.assertTrue(self.scheduler.toggle_pause())
        self.assertFalse(self.scheduler.tick())
        self.assertEqual(self.scheduler.run_ticks(3), 0)
        self.assertEqual(self.scheduler.clock, 5)
        self.assertEqual(self.scheduler.last_process_create, 4)

        self.assertFalse(self.scheduler.toggle_pause())
        self.scheduler.tick()
        self.assertEqual(self.scheduler.clock, 6)
        self.assertEqual(self.scheduler.system.stats.processes_created, 3)

    def test_toggle_pause_when_stopped(self):
        self.assertFalse(self.scheduler.toggle_pause())
        self.assertFalse(self.scheduler.paused)

    def test_out_of_memory_halts(self):
        """A creation that does not fit halts the run without registering anything"""
        config = SimulationConfig(physical_mem_mb=16, page_size_kb=64,
                                  min_process_size_mb=100, max_process_size_mb=100)
        scheduler = SimulationScheduler(config, seed=3, logger=Mock())
        scheduler.start()
        self.assertEqual(scheduler.run_ticks(10), 2)

        self.assertTrue(scheduler.halted)
        self.assertFalse(scheduler.running)
        self.assertEqual(scheduler.clock, 2)
        self.assertEqual(scheduler.system.processes, {})
        self.assertEqual(scheduler.system.stats.processes_created, 0)
        self.assertEqual(scheduler.system.ram.occupied_count(), 0)
        self.assertEqual(scheduler.system.swap.occupied_count(), 0)
        self.assertEqual(scheduler.system.log.tail(1)[0].level, 'error')
        self.assertFalse(scheduler.tick())

    def test_reset_reinitializes(self):
        self.scheduler.start()
        self.scheduler.run_ticks(40)
        self.scheduler.reset()

        snap = self.scheduler.snapshot()
        self.assertFalse(snap['running'])
        self.assertEqual(snap['clock'], 0)
        self.assertEqual(snap['processes'], [])
        self.assertEqual(snap['stats'], {'page_faults': 0, 'processes_created': 0, 'processes_finished': 0})
        self.assertTrue(all(frame is None for frame in snap['ram']))
        self.assertTrue(all(frame is None for frame in snap['swap']))
        # Only the initialization entry remains
        self.assertEqual(len(self.scheduler.system.log), 1)
        self.assertEqual(self.scheduler.last_process_create, 0)
        self.assertEqual(self.scheduler.last_event, 0)

    def test_reset_is_idempotent(self):
        self.scheduler.start()
        self.scheduler.run_ticks(12)
        self.scheduler.reset()
        once = self.scheduler.snapshot()
        self.scheduler.reset()
        twice = self.scheduler.snapshot()
        self.assertEqual(once, twice)

    def test_reset_applies_new_config(self):
        self.scheduler.reset(SimulationConfig(physical_mem_mb=32, page_size_kb=64))
        self.assertEqual(self.scheduler.system.ram.capacity, 512)

    def test_out_of_memory_on_event_tick_still_terminates(self):
        """A failed creation at 30s still runs that tick's termination and access"""
        self.scheduler.start()
        self.scheduler.run_ticks(29)
        self.scheduler.system.min_process_size_mb = 10_000
        self.scheduler.system.max_process_size_mb = 10_000

        self.assertTrue(self.scheduler.tick())

        self.assertTrue(self.scheduler.halted)
        self.assertEqual(self.scheduler.system.stats.processes_created, 14)
        self.assertEqual(self.scheduler.system.stats.processes_finished, 1)
        self.assertEqual(self.scheduler.last_event, 30)
        messages = [entry.message for entry in self.scheduler.system.log if entry.timestamp == 30]
        self.assertTrue(any(m.startswith("Access to virtual address") for m in messages))
        self.assertFalse(self.scheduler.tick())
        self.assertEqual(self.scheduler.clock, 30)
        self.assertConsistent()

    def test_start_after_halt_reinitializes(self):
        config = SimulationConfig(physical_mem_mb=16, page_size_kb=64,
                                  min_process_size_mb=100, max_process_size_mb=100)
        scheduler = SimulationScheduler(config, seed=3, logger=Mock())
        scheduler.start()
        scheduler.run_ticks(5)
        scheduler.start()
        self.assertTrue(scheduler.running)
        self.assertFalse(scheduler.halted)
        self.assertEqual(scheduler.clock, 0)

    def test_seeded_runs_are_replayable(self):
        first = SimulationScheduler(small_config(), seed=9, logger=Mock())
        second = SimulationScheduler(small_config(), seed=9, logger=Mock())
        first.start()
        second.start()
        first.run_ticks(80)
        second.run_ticks(80)
        self.assertEqual(first.snapshot(log_tail=100), second.snapshot(log_tail=100))

    def test_long_run_keeps_invariants(self):
        """Frame bookkeeping holds after every tick of a long run"""
        config = SimulationConfig(physical_mem_mb=16, page_size_kb=64, min_process_size_mb=1, max_process_size_mb=3)
        scheduler = SimulationScheduler(config, seed=5, logger=Mock())
        scheduler.start()
        for _ in range(200):
            if not scheduler.tick():
                break
            system = scheduler.system
            self.assertEqual(system.find_inconsistencies(), [])
            total_pages = sum(p.num_pages for p in system.processes.values())
            self.assertEqual(total_pages, system.ram.occupied_count() + system.swap.occupied_count())


class TestRealTimeRunner(unittest.TestCase):

    def test_runner_ticks_in_background(self):
        scheduler = SimulationScheduler(small_config(), seed=2, logger=Mock())
        scheduler.start()
        runner = RealTimeRunner(scheduler, interval=0.01)
        runner.start()
        self.assertTrue(runner.is_alive())
        time.sleep(0.3)
        runner.stop(timeout=2)

        self.assertFalse(runner.is_alive())
        clock = runner.snapshot()['clock']
        self.assertGreater(clock, 0)
        time.sleep(0.05)
        self.assertEqual(scheduler.clock, clock)

    def test_runner_respects_pause(self):
        scheduler = SimulationScheduler(small_config(), seed=2, logger=Mock())
        scheduler.start()
        scheduler.toggle_pause()
        runner = RealTimeRunner(scheduler, interval=0.01)
        runner.start()
        time.sleep(0.1)
        runner.stop(timeout=2)
        self.assertEqual(scheduler.clock, 0)


if __name__ == '__main__':
    unittest.main()
