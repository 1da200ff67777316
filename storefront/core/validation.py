"""Local input validation; failures never reach the server."""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^[6-9]\d{9}$")
PINCODE_RE = re.compile(r"^[1-9][0-9]{5}$")

PASSWORD_MIN_LENGTH = 8


@dataclass
class PasswordCheck:
    is_valid: bool
    errors: list[str] = field(default_factory=list)


def validate_email(email: str) -> bool:
    return bool(EMAIL_RE.match(email or ""))


def validate_phone(phone: str) -> bool:
    """Indian mobile number; spaces are ignored."""
    return bool(PHONE_RE.match(re.sub(r"\s+", "", phone or "")))


def validate_pincode(pincode: str) -> bool:
    return bool(PINCODE_RE.match(pincode or ""))


def validate_password(password: str) -> PasswordCheck:
    password = password or ""
    errors: list[str] = []

    if len(password) < PASSWORD_MIN_LENGTH:
        errors.append(f"Password must be at least {PASSWORD_MIN_LENGTH} characters long")
    if not re.search(r"[A-Z]", password):
        errors.append("Include at least one uppercase letter (A-Z)")
    if not re.search(r"[a-z]", password):
        errors.append("Include at least one lowercase letter (a-z)")
    if not re.search(r"\d", password):
        errors.append("Include at least one number (0-9)")

    return PasswordCheck(is_valid=not errors, errors=errors)


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def missing_fields(form: Any, names: Iterable[str]) -> list[str]:
    """Names of required fields that are empty on a mapping or attribute object."""
    if isinstance(form, Mapping):
        return [name for name in names if is_blank(form.get(name))]
    return [name for name in names if is_blank(getattr(form, name, None))]
