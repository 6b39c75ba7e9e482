from __future__ import annotations

import math
from typing import Optional

from ..core.enums import MANAGER_ROLES, Role
from ..core.exceptions import AuthorizationError, ValidationError


def require_range(value, field_name: str, *, low: float, high: float):
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if not math.isfinite(number) or number < low or number > high:
        raise ValidationError(f"{field_name} must be between {low:g} and {high:g}")
    return value


def require_geolocation(latitude: Optional[float], longitude: Optional[float]) -> None:
    if latitude is None or longitude is None:
        return
    if not (math.isfinite(latitude) and math.isfinite(longitude)):
        raise ValidationError("Geolocation must be finite numbers")
    if latitude < -90 or latitude > 90:
        raise ValidationError("Invalid latitude value")
    if longitude < -180 or longitude > 180:
        raise ValidationError("Invalid longitude value")


def require_manager(role: Role) -> None:
    if role not in MANAGER_ROLES:
        raise AuthorizationError("You do not have permission for this action")
