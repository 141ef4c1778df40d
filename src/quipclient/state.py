from collections import OrderedDict
from typing import Union


class RetryCounterTable:
    """Failure counts per endpoint key for one failure class.

    Counts are never reset by a success. When ``capacity`` distinct endpoints are
    tracked, the least recently touched one is dropped to make room.
    """

    def __init__(self, name: str, capacity: Union[int, None] = None):
        self.name = name
        self.capacity = capacity
        self._counts: OrderedDict[str, int] = OrderedDict()

    def increment(self, endpoint: str) -> int:
        count = self._counts.pop(endpoint, 0) + 1
        self._counts[endpoint] = count
        if self.capacity is not None:
            while len(self._counts) > self.capacity:
                self._counts.popitem(last=False)
        return count

    def get(self, endpoint: str) -> int:
        return self._counts.get(endpoint, 0)

    def snapshot(self) -> dict[str, int]:
        return dict(self._counts)

    def __len__(self) -> int:
        return len(self._counts)

    def __contains__(self, endpoint: object) -> bool:
        return endpoint in self._counts
