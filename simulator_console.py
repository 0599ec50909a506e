import argparse
import sys

from os_core.config import (ConfigError, DEFAULT_MAX_PROCESS_MB, DEFAULT_MIN_PROCESS_MB,
                            DEFAULT_PAGE_SIZE_KB, DEFAULT_PHYSICAL_MEM_MB, SimulationConfig)
from os_core.scheduler import SimulationScheduler

STATUS_EVERY = 10


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Headless memory paging simulator (FIFO replacement)")
    parser.add_argument("--physical-mb", type=int, default=DEFAULT_PHYSICAL_MEM_MB, help="physical memory in MB (16-1024)")
    parser.add_argument("--page-kb", type=int, default=DEFAULT_PAGE_SIZE_KB, help="page size in KB (1-64)")
    parser.add_argument("--min-mb", type=float, default=DEFAULT_MIN_PROCESS_MB, help="minimum process size in MB")
    parser.add_argument("--max-mb", type=float, default=DEFAULT_MAX_PROCESS_MB, help="maximum process size in MB")
    parser.add_argument("--ticks", type=int, default=120, help="simulated seconds to run")
    parser.add_argument("--seed", type=int, default=None, help="random seed for a replayable run")
    return parser.parse_args(argv)


def run(args, out=print):
    config = SimulationConfig(physical_mem_mb=args.physical_mb, page_size_kb=args.page_kb,
                              min_process_size_mb=args.min_mb, max_process_size_mb=args.max_mb)
    try:
        config.validate()
    except ConfigError as e:
        out(f"Invalid configuration: {e}")
        return 2

    scheduler = SimulationScheduler(config, seed=args.seed, logger=out)
    scheduler.start()
    reported = False
    for _ in range(args.ticks):
        if not scheduler.tick():
            break
        reported = scheduler.clock % STATUS_EVERY == 0
        if reported:
            out(scheduler.system.memory_status())

    if not reported:
        out(scheduler.system.memory_status())
    if scheduler.halted:
        out("Simulation terminated: out of memory.")
        return 1
    return 0


def main(argv=None):
    return run(parse_args(argv))


if __name__ == "__main__":
    sys.exit(main())
