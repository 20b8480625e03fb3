"""Reference number allocation."""

import logging
import random
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from uuid import UUID

from suicity_sync.domain.records import COLUMN_REF_NUMBER, SetFields, UserRecord

_logger = logging.getLogger(__name__)


@dataclass
class Allocation:
    """Reference numbers assigned during a run."""

    assignments: dict[UUID, int] = field(default_factory=dict)
    wasted_draws: int = 0
    upper_bound: int = 0

    def ops(self) -> list[SetFields]:
        """Store operations that persist the assignments."""
        return [
            SetFields(record_id=record_id, fields={COLUMN_REF_NUMBER: ref_number})
            for record_id, ref_number in self.assignments.items()
        ]


@dataclass
class RefNumberAllocator:
    """Draw collision-free reference numbers from a widening range.

    Collisions are checked against the in-memory used-set only. After
    `max_attempts` consecutive collisions the upper bound grows by
    `widen_step`.
    """

    lower_bound: int = 20000
    upper_bound: int = 100000
    max_attempts: int = 100
    widen_step: int = 100000
    draw: Callable[[int, int], int] = random.randint

    def allocate(
        self, used: Iterable[int], pending: Iterable[UserRecord]
    ) -> Allocation:
        """Assign a number to every pending record."""
        taken = set(used)
        allocation = Allocation(upper_bound=self.upper_bound)
        for record in pending:
            ref_number, wasted = self._draw_unique(taken, allocation)
            taken.add(ref_number)
            allocation.assignments[record.id] = ref_number
            allocation.wasted_draws += wasted
            _logger.info(
                "Assigning reference number %s to record %s (wallet %s)",
                ref_number,
                record.id,
                record.wallet_address,
            )
        return allocation

    def _draw_unique(self, taken: set[int], allocation: Allocation) -> tuple[int, int]:
        wasted = 0
        attempts = 0
        while True:
            candidate = self.draw(self.lower_bound, allocation.upper_bound)
            if candidate not in taken:
                return candidate, wasted
            wasted += 1
            attempts += 1
            if attempts >= self.max_attempts:
                allocation.upper_bound += self.widen_step
                attempts = 0
                _logger.warning(
                    "Reference range crowded, widening upper bound to %s",
                    allocation.upper_bound,
                )
