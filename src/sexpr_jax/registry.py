"""Variable cells and the registry that gives names shared identity."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator, Mapping

logger = logging.getLogger(__name__)

_FORBIDDEN_NAME_CHARS = frozenset("()")


def _validate_name(name: str) -> None:
    if not name or any(ch.isspace() or ch in _FORBIDDEN_NAME_CHARS for ch in name):
        raise ValueError(f"Invalid variable name {name!r}: must be non-empty without whitespace or parentheses")


class Cell:
    """Named mutable float owned by one :class:`VariableRegistry`."""

    __slots__ = ("_name", "_value")

    def __init__(self, name: str, value: float = 0.0) -> None:
        self._name = name
        self._value = float(value)

    @property
    def name(self) -> str:
        return self._name

    @property
    def value(self) -> float:
        return self._value

    @value.setter
    def value(self, v: float) -> None:
        self._value = float(v)

    def __repr__(self) -> str:
        return f"Cell(name={self._name!r}, value={self._value!r})"


class VariableRegistry(Mapping[str, Cell]):
    """Thread-safe name -> :class:`Cell` mapping.

    Registries are the isolation boundary for variable identity: trees parsed
    against the same registry share cells by name, two registries never share
    cells. Creation and bulk refresh are serialized by a lock; reading a
    cell's value while another thread writes it is not.
    """

    def __init__(self) -> None:
        self._cells: dict[str, Cell] = {}
        self._lock = threading.Lock()

    def __getitem__(self, name: str) -> Cell:
        return self._cells[name]

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._cells))

    def __len__(self) -> int:
        return len(self._cells)

    def __contains__(self, name: object) -> bool:
        return name in self._cells

    def __repr__(self) -> str:
        return f"VariableRegistry({self.snapshot()!r})"

    def find_variable(self, name: str) -> Cell | None:
        return self._cells.get(name)

    def lookup_or_create(self, name: str) -> Cell:
        cell = self._cells.get(name)
        if cell is not None:
            return cell
        _validate_name(name)
        with self._lock:
            cell = self._cells.get(name)
            if cell is None:
                cell = Cell(name)
                self._cells[name] = cell
                logger.debug("registered variable %r", name)
        return cell

    def refresh(self, values: Mapping[str, float]) -> None:
        """Set every owned cell from ``values``; cells missing from it are reset to 0.0.

        All values are converted before any cell changes, so a non-numeric value
        raises without leaving the registry half updated.
        """
        converted = {name: float(value) for name, value in values.items()}
        with self._lock:
            for name, cell in self._cells.items():
                cell.value = converted.get(name, 0.0)
        logger.debug("refreshed %d variables from %d supplied values", len(self._cells), len(values))

    def names(self) -> tuple[str, ...]:
        return tuple(self._cells)

    def snapshot(self) -> dict[str, float]:
        with self._lock:
            return {name: cell.value for name, cell in self._cells.items()}
