# src/batch/ledger.py — v1
"""Ordered, index-stable container of per-item progress records.

The index of an entry is its identity for the lifetime of a batch: it
matches the processing order and the position of the originating file.
Status changes follow pending -> processing -> {done, needs_review, failed};
anything else raises InvalidTransitionError.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from receiptscan.core.errors import InvalidTransitionError
from receiptscan.core.models import TERMINAL_STATUSES, ScanItem, ScanStatus

_ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    "pending": frozenset({"processing"}),
    "processing": TERMINAL_STATUSES,
    "done": frozenset(),
    "needs_review": frozenset(),
    "failed": frozenset(),
}

_UNSET = object()


class ItemLedger:
    """Single-writer ledger of ScanItems."""

    def __init__(self, items: Iterable[ScanItem] | None = None) -> None:
        self._items: list[ScanItem] = [i.model_copy() for i in items or ()]

    def __len__(self) -> int:
        return len(self._items)

    def __getitem__(self, index: int) -> ScanItem:
        return self._items[index].model_copy()

    def __iter__(self) -> Iterator[ScanItem]:
        return iter(self.items)

    @property
    def items(self) -> list[ScanItem]:
        """Snapshot copy of all entries, in order."""
        return [i.model_copy() for i in self._items]

    def append(self, item: ScanItem) -> int:
        """Add an entry at the end and return its index."""
        self._items.append(item.model_copy())
        return len(self._items) - 1

    def seed(self, names: Iterable[str]) -> None:
        """Replace all entries with fresh pending items, one per name."""
        self._items = [ScanItem(name=n) for n in names]

    def replace(self, items: Iterable[ScanItem]) -> None:
        """Replace all entries verbatim (used when restoring a session)."""
        self._items = [i.model_copy() for i in items]

    def clear(self) -> None:
        self._items = []

    def update(
        self,
        index: int,
        status: ScanStatus | None = None,
        message: str | None | object = _UNSET,
    ) -> ScanItem:
        """Apply a partial update to one entry.

        Args:
            index: Entry position.
            status: New status (omitted = unchanged).
            message: New message (omitted = unchanged, None = cleared).

        Returns:
            Copy of the updated entry.

        Raises:
            IndexError: If index is out of range.
            InvalidTransitionError: If the status change is not allowed.
        """
        current = self._items[index]
        changes: dict[str, object] = {}

        if status is not None and status != current.status:
            if status not in _ALLOWED_TRANSITIONS[current.status]:
                raise InvalidTransitionError(index, current.status, status)
            changes["status"] = status

        if message is not _UNSET:
            changes["message"] = message

        if changes:
            self._items[index] = current.model_copy(update=changes)
        return self._items[index].model_copy()

    def counts(self) -> dict[str, int]:
        """Number of entries per status (every status key present)."""
        result = {s: 0 for s in _ALLOWED_TRANSITIONS}
        for item in self._items:
            result[item.status] += 1
        return result

    def all_terminal(self) -> bool:
        """True when non-empty and every entry reached a terminal status."""
        return bool(self._items) and all(i.is_terminal for i in self._items)

    def has_pending_or_processing(self) -> bool:
        return any(i.status in ("pending", "processing") for i in self._items)
