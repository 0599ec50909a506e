RAM = 'RAM'
SWAP = 'SWAP'


class FramePool:
    """Fixed-capacity array of frames for one store (RAM or SWAP).

    frames[idx] = {'pid': pid, 'vpage': virtual_page_num} or None if free
    """

    def __init__(self, name, capacity):
        if capacity < 0:
            raise ValueError(f"{name} pool capacity cannot be negative (got {capacity}).")
        self.name = name
        self.capacity = capacity
        self.frames = [None] * capacity

    def find_free_frame(self, start=0):
        """Lowest free index at or after `start`, or None when there is none."""
        for idx in range(start, self.capacity):
            if self.frames[idx] is None:
                return idx
        return None

    def find_occupied_frame(self):
        """Lowest occupied index, or None when the pool is empty."""
        for idx, frame in enumerate(self.frames):
            if frame is not None:
                return idx
        return None

    def occupy(self, idx, pid, vpage):
        if self.frames[idx] is not None:
            raise ValueError(f"{self.name} frame {idx} is already held by PID {self.frames[idx]['pid']}.")
        self.frames[idx] = {'pid': pid, 'vpage': vpage}

    def release(self, idx):
        self.frames[idx] = None

    def get(self, idx):
        return self.frames[idx]

    def free_count(self):
        return self.frames.count(None)

    def occupied_count(self):
        return self.capacity - self.free_count()

    def usage_percent(self):
        if self.capacity == 0:
            return 0.0
        return self.occupied_count() / self.capacity * 100

    def get_map(self):
        """Copy of the frame contents for display."""
        return [dict(frame) if frame else None for frame in self.frames]

    def __len__(self):
        return self.capacity
