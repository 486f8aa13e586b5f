import re
from decimal import Decimal, InvalidOperation
from typing import Any


def add_serial_numbers(data_list, page=1, page_size=10, order="desc"):
    total = len(data_list)
    page = max(1, int(page or 1))
    page_size = max(1, min(100, int(page_size or 10)))

    start = (page - 1) * page_size
    end = start + page_size
    page_data = [dict(item) for item in data_list[start:end]]

    if page_data:
        if order.lower() == "desc":
            sr = total - start
            step = -1
        else:
            sr = start + 1
            step = 1

        for item in page_data:
            item["sr_no"] = sr
            sr += step

    return {
        "total_items": total,
        "current_page": page,
        "page_size": page_size,
        "total_pages": (total + page_size - 1) // page_size if total else 1,
        "results": page_data
    }


def is_positive_integer(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return value > 0
    if isinstance(value, str):
        return bool(re.fullmatch(r"[1-9]\d*", value.strip()))
    return False


def parse_amount(value, allow_zero=True):
    """Decimal for a non-negative money amount, or None when invalid."""
    if value is None or isinstance(value, bool) or str(value).strip() == '':
        return None
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not amount.is_finite() or amount < 0 or (amount == 0 and not allow_zero):
        return None
    return amount
