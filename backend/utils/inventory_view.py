# utils/inventory_view.py
from typing import Iterable, List, Optional

from models.inventory import InventoryItem

SORT_KEYS = {
    "name": lambda item: item.name,
    "quantity": lambda item: item.quantity,
    "price": lambda item: item.price,
}
DEFAULT_SORT = "name"


def filter_and_sort(
    items: Iterable[InventoryItem],
    search: Optional[str] = None,
    sort_by: str = DEFAULT_SORT,
    order: str = "asc",
) -> List[InventoryItem]:
    """Case-insensitive name search followed by a sort on name, quantity or price."""
    needle = (search or "").strip().lower()
    matched = [item for item in items if needle in (item.name or "").lower()]

    key = SORT_KEYS.get((sort_by or DEFAULT_SORT).lower(), SORT_KEYS[DEFAULT_SORT])
    return sorted(matched, key=key, reverse=(order == "desc"))


def totals(items: Iterable[InventoryItem]) -> tuple:
    """(sum of quantities, sum of price * quantity)"""
    total_items = 0
    total_price = 0.0
    for item in items:
        total_items += item.quantity or 0
        total_price += item.line_total
    return total_items, round(total_price, 2)
