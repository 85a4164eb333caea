# utils/validation.py
import re
from typing import Optional, Tuple

from email_validator import validate_email, EmailNotValidError
from fastapi import HTTPException

MIN_PASSWORD_LENGTH = 6
# Quantities are stored as 32-bit signed integers
MAX_QUANTITY = 2**31 - 1

# Plain decimal forms only: no digit separators, no nan/inf
INT_RE = re.compile(r"[+-]?\d+")
FLOAT_RE = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")


def _reject(message: str):
    raise HTTPException(status_code=400, detail=message)


def parse_item_form(name: Optional[str], quantity: Optional[str], price: Optional[str]) -> Tuple[str, int, float]:
    """Validate the add/edit item form and return (name, quantity, price).

    Runs before any upload or write; the first failing check wins.
    """
    name = (name or "").strip()
    quantity = (quantity or "").strip()
    price = (price or "").strip()

    if not name or not quantity or not price:
        _reject("Please fill out all fields")

    quantity_int = None
    # Digit cap keeps int() clear of its digit limit
    if INT_RE.fullmatch(quantity) and len(quantity.lstrip("+-").lstrip("0")) <= 10:
        quantity_int = int(quantity)
    if quantity_int is None or not (0 <= quantity_int <= MAX_QUANTITY):
        _reject("Please enter a valid quantity")

    price_float = float(price) if FLOAT_RE.fullmatch(price) else None
    # Huge exponents overflow to inf
    if price_float is None or not (0.0 <= price_float < float("inf")):
        _reject("Please enter a valid price")

    return name, quantity_int, price_float


def is_valid_email(email: str) -> bool:
    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


def check_registration(username: str, email: str, password: str) -> None:
    if not username or not username.strip():
        _reject("Please enter a username")
    if not email or not email.strip() or not is_valid_email(email.strip()):
        _reject("Please enter a valid email address")
    check_password(password)


def check_password(password: str) -> None:
    if len(password or "") < MIN_PASSWORD_LENGTH:
        _reject(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")


def check_login(username: str, password: str) -> None:
    if not username or not username.strip():
        _reject("Please enter your username")
    if not password:
        _reject("Please enter your password")
