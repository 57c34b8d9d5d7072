"""
Domain model for limited editions.
"""
from __future__ import annotations

from shop.domain.exceptions import SoldOutError


class ArtworkEdition:
    """One size of a limited-edition artwork."""

    def __init__(
        self,
        artwork_id: str,
        size: str,
        price_minor_units: int,
        edition_limit: int,
        editions_sold: int = 0,
        title: str = "",
        size_display: str = "",
    ):
        if price_minor_units < 0:
            raise ValueError("Price must be non-negative")
        if edition_limit <= 0:
            raise ValueError("Edition limit must be positive")
        if not 0 <= editions_sold <= edition_limit:
            raise ValueError(
                f"Editions sold {editions_sold} outside 0..{edition_limit}"
            )

        self.artwork_id = str(artwork_id)
        self.size = size
        self.price_minor_units = price_minor_units
        self.edition_limit = edition_limit
        self._editions_sold = editions_sold
        self.title = title or self.artwork_id
        self.size_display = size_display or size

    @property
    def key(self) -> tuple[str, str]:
        return (self.artwork_id, self.size)

    @property
    def editions_sold(self) -> int:
        return self._editions_sold

    @property
    def remaining(self) -> int:
        return self.edition_limit - self._editions_sold

    def sell(self, quantity: int) -> int:
        """Record a sale and return the first edition number assigned to it."""
        if not is_available(self, quantity):
            raise SoldOutError(self.title, self.size_display, quantity, self.remaining)

        edition_number_start = self._editions_sold + 1
        self._editions_sold += quantity
        return edition_number_start


def is_available(edition: ArtworkEdition, requested_qty: int) -> bool:
    """Whether ``requested_qty`` more units fit under the edition limit."""
    if requested_qty < 1:
        raise ValueError("Requested quantity must be at least 1")
    return edition.editions_sold + requested_qty <= edition.edition_limit
