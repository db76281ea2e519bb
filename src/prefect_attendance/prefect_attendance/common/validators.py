from __future__ import annotations

from ..core.enums import PrefectRole
from ..core.exceptions import ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_role(value) -> PrefectRole:
    if isinstance(value, PrefectRole):
        return value
    try:
        return PrefectRole(value)
    except ValueError:
        allowed = ", ".join(r.value for r in PrefectRole)
        raise ValidationError(f"Unknown role {value!r}. Expected one of: {allowed}") from None
