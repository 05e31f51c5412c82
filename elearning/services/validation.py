"""
Kleine Hilfsfunktionen für die Validierung von Request-Werten.

Author: DSP Development Team
Version: 1.0.0
"""

from typing import Any, Optional

from ..exceptions import ValidationError


def parse_id(value: Any, field_name: str) -> int:
    """Wandelt eine ID aus dem Request in ``int`` um oder wirft 400."""
    if value is None or value == "":
        raise ValidationError(f"{field_name} is required")
    if isinstance(value, bool):
        raise ValidationError(f"Invalid {field_name}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {field_name}")


def parse_optional_int(value: Any, field_name: str) -> Optional[int]:
    if value is None or value == "":
        return None
    return parse_id(value, field_name)
