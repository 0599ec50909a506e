import math

from os_core.frame_pool import RAM, SWAP


class PageTableEntry:
    def __init__(self, virtual_page, physical_index, location):
        self.virtual_page = virtual_page
        self.physical_index = physical_index
        self.location = location  # RAM or SWAP

    @property
    def in_ram(self):
        return self.location == RAM

    @property
    def in_swap(self):
        return self.location == SWAP

    def move_to(self, location, physical_index):
        self.location = location
        self.physical_index = physical_index

    def as_dict(self):
        return {'virtual': self.virtual_page, 'physical': self.physical_index, 'location': self.location}

    def __repr__(self):
        return f"PageTableEntry(vpage={self.virtual_page}, {self.location}[{self.physical_index}])"


class Process:
    def __init__(self, pid, size_bytes, page_size, page_table=None):
        self.pid = pid
        self.size_bytes = size_bytes
        self.num_pages = pages_for(size_bytes, page_size)
        # Indexed by virtual page number
        self.page_table = page_table if page_table is not None else []
        self.state = 'NEW'  # NEW, READY, TERMINATED

    @property
    def size_kb(self):
        return self.size_bytes // 1024

    def entry(self, virtual_page):
        if not 0 <= virtual_page < self.num_pages:
            raise IndexError(
                f"Segmentation Fault - Page {virtual_page} is outside PID {self.pid}'s address space (0-{self.num_pages - 1}).")
        return self.page_table[virtual_page]

    def pages_in(self, location):
        return sum(1 for pte in self.page_table if pte.location == location)

    def as_dict(self):
        return {
            'pid': self.pid,
            'size_kb': self.size_kb,
            'pages': self.num_pages,
            'state': self.state,
            'page_table': [pte.as_dict() for pte in self.page_table],
        }


def pages_for(size_bytes, page_size):
    return math.ceil(size_bytes / page_size)
