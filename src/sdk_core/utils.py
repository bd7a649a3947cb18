"""Small value helpers shared by the config dataclasses."""


def to_bool(value: object) -> bool:
    """Coerce YAML/env values; bool('false') would be True, so strings are parsed."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


__all__ = ["to_bool"]
