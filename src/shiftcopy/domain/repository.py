"""Shift persistence interfaces.

The copy engine never talks to a database directly. It reads and writes
shifts through a ShiftRepository, so the storage backend can be swapped
without touching the analysis logic. Two implementations ship with the
package: an in-memory store and a JSON snapshot file used by the CLI.
"""

import itertools
import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union

from shiftcopy.domain.models import (
    Employee,
    ExistingShift,
    Interval,
    OpeningHours,
    check_iso_weekday,
)
from shiftcopy.exceptions import RepositoryError, SnapshotError

logger = logging.getLogger(__name__)


class ShiftRepository(ABC):
    """Abstract base class for shift storage backends."""

    @abstractmethod
    async def list_shifts(self) -> list[ExistingShift]:
        """Return every stored shift."""
        pass

    @abstractmethod
    async def get_shifts_for_employee(self, employee_id: str) -> list[ExistingShift]:
        """Return the shifts of one employee."""
        pass

    @abstractmethod
    async def create_shift(
        self,
        employee_id: str,
        weekday: int,
        interval: Interval,
    ) -> ExistingShift:
        """Persist a new shift and return it.

        Args:
            employee_id: Employee receiving the shift.
            weekday: ISO weekday of the shift.
            interval: Shift time.
        """
        pass

    @abstractmethod
    async def delete_shifts_for_employee_on_weekday(
        self,
        employee_id: str,
        weekday: int,
    ) -> int:
        """Delete all shifts of an employee on one ISO weekday.

        Returns:
            Number of deleted shifts.
        """
        pass


class InMemoryShiftRepository(ShiftRepository):
    """Shift repository backed by a Python list.

    Example:
        >>> repo = InMemoryShiftRepository([shift1, shift2])
        >>> shifts = await repo.get_shifts_for_employee("E1")
    """

    def __init__(self, shifts: Optional[list[ExistingShift]] = None):
        self._ids = itertools.count(1)
        self._shifts: list[ExistingShift] = list(shifts or [])
        self._shifts = [self._with_id(shift) for shift in self._shifts]

    def _next_id(self) -> str:
        taken = {s.shift_id for s in self._shifts}
        while True:
            candidate = f"S{next(self._ids):04d}"
            if candidate not in taken:
                return candidate

    def _with_id(self, shift: ExistingShift) -> ExistingShift:
        if shift.shift_id is not None:
            return shift
        return ExistingShift(
            employee_id=shift.employee_id,
            weekday=shift.weekday,
            interval=shift.interval,
            shift_id=self._next_id(),
        )

    @property
    def shifts(self) -> list[ExistingShift]:
        """Snapshot of the stored shifts."""
        return list(self._shifts)

    async def list_shifts(self) -> list[ExistingShift]:
        return list(self._shifts)

    async def get_shifts_for_employee(self, employee_id: str) -> list[ExistingShift]:
        return [s for s in self._shifts if s.employee_id == employee_id]

    async def create_shift(
        self,
        employee_id: str,
        weekday: int,
        interval: Interval,
    ) -> ExistingShift:
        shift = self._with_id(
            ExistingShift(employee_id=employee_id, weekday=weekday, interval=interval)
        )
        self._shifts.append(shift)
        logger.debug("Created shift %s for %s on weekday %d (%s)",
                     shift.shift_id, employee_id, weekday, interval)
        return shift

    async def delete_shifts_for_employee_on_weekday(
        self,
        employee_id: str,
        weekday: int,
    ) -> int:
        check_iso_weekday(weekday)
        kept = [
            s for s in self._shifts
            if not (s.employee_id == employee_id and s.weekday == weekday)
        ]
        deleted = len(self._shifts) - len(kept)
        self._shifts = kept
        logger.debug("Deleted %d shifts for %s on weekday %d", deleted, employee_id, weekday)
        return deleted


class JsonShiftRepository(InMemoryShiftRepository):
    """Shift repository persisted to a JSON snapshot file.

    The snapshot holds employees, shifts and opening hours. Weekdays in the
    file use the database convention (0=Sunday ... 6=Saturday)::

        {
          "employees": [{"id": "E1", "full_name": "Anna"}],
          "shifts": [{"id": "S1", "employee_id": "E1", "weekday": 1,
                      "start_time": "09:00", "end_time": "17:00"}],
          "opening_hours": [{"weekday": 1, "open_time": "09:00",
                             "close_time": "18:00", "is_closed": false}]
        }

    Every mutation is written back to the file immediately.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        data = self._load()
        try:
            shifts = [ExistingShift.from_record(r) for r in data.get("shifts", [])]
            self.employees = [
                Employee(id=str(e["id"]), full_name=e.get("full_name", ""))
                for e in data.get("employees", [])
            ]
            self.opening_hours = OpeningHours.from_records(data.get("opening_hours", []))
        except (KeyError, TypeError, ValueError) as exc:
            raise SnapshotError(f"Malformed snapshot {self.path}: {exc}") from exc
        super().__init__(shifts)
        logger.info("Loaded snapshot %s: %d employees, %d shifts",
                    self.path, len(self.employees), len(shifts))

    def _load(self) -> dict:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            raise SnapshotError(f"Snapshot not found: {self.path}") from None
        except json.JSONDecodeError as exc:
            raise SnapshotError(f"Snapshot {self.path} is not valid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise SnapshotError(f"Snapshot {self.path} must contain a JSON object")
        return data

    def save(self) -> None:
        """Write the current state back to the snapshot file."""
        data = {
            "employees": [
                {"id": e.id, "full_name": e.full_name} for e in self.employees
            ],
            "shifts": [s.to_record() for s in self._shifts],
            "opening_hours": self.opening_hours.to_records(),
        }
        try:
            self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        except OSError as exc:
            raise RepositoryError(f"Could not write snapshot {self.path}: {exc}") from exc

    async def create_shift(
        self,
        employee_id: str,
        weekday: int,
        interval: Interval,
    ) -> ExistingShift:
        shift = await super().create_shift(employee_id, weekday, interval)
        self.save()
        return shift

    async def delete_shifts_for_employee_on_weekday(
        self,
        employee_id: str,
        weekday: int,
    ) -> int:
        deleted = await super().delete_shifts_for_employee_on_weekday(employee_id, weekday)
        if deleted:
            self.save()
        return deleted
