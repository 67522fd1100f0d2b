from __future__ import annotations

from typing import Any

from pokescan.perception.parser import MAX_CP, MAX_HP, NAME_MAX_LEN


def _field(result: Any, name: str) -> Any:
    if isinstance(result, dict):
        return result.get(name)
    return getattr(result, name, None)


def _check_number(value: Any, label: str, maximum: int) -> str | None:
    # form fields arrive as strings
    if value is None or value == "":
        return f"{label} must be greater than 0"
    try:
        number = int(value)
    except (TypeError, ValueError):
        return f"{label} must be a number"
    if number <= 0:
        return f"{label} must be greater than 0"
    if number > maximum:
        return f"{label} is too high"
    return None


def validate_result(result: Any) -> dict[str, str]:
    """Check name, CP and HP of a result before it is stored.

    Accepts an ``OCRResult`` or any object/dict with those fields (form data
    from the UI, for instance, where numbers may still be strings). Returns
    field -> message; empty when valid. Level and IVs are informational and
    never checked.
    """
    errors: dict[str, str] = {}

    name = _field(result, "name")
    if not name or not str(name).strip():
        errors["name"] = "Name is required"
    elif len(str(name)) > NAME_MAX_LEN:
        errors["name"] = "Name is too long"

    for key, label, maximum in (("cp", "CP", MAX_CP), ("hp", "HP", MAX_HP)):
        message = _check_number(_field(result, key), label, maximum)
        if message:
            errors[key] = message

    return errors
