from typing import Any


def get_attr(o: Any, attr: str, default: Any = None) -> Any:
    # Convenience method to get an attribute from an object or a mapping
    if isinstance(o, dict):
        return o.get(attr, default)
    return getattr(o, attr, default)
