from dataclasses import dataclass
from typing import Optional


@dataclass
class SelectionTracker:
    """
    Tracks the selected transaction and the message shown for it.
    Each selection gets a ticket; only the latest ticket may update the display,
    so a slow narrative for an old selection is dropped instead of overwriting a newer one.
    """

    selected_id: Optional[str] = None
    message: Optional[dict] = None
    _ticket: int = 0

    def select(self, transaction_id: str) -> int:
        self._ticket += 1
        self.selected_id = transaction_id
        self.message = None
        return self._ticket

    def is_current(self, ticket: int) -> bool:
        return ticket == self._ticket

    def resolve(self, ticket: int, message: dict) -> bool:
        if not self.is_current(ticket):
            return False
        self.message = message
        return True

    @property
    def pending(self) -> bool:
        return self.selected_id is not None and self.message is None

    def clear(self) -> None:
        self._ticket += 1
        self.selected_id = None
        self.message = None
