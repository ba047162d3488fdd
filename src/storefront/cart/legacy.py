"""Normalization of legacy cart item payloads.

Older clients send ``color`` and ``size`` at the top level of a cart item;
current clients nest them under ``variant``. Everything past the API boundary
only ever sees the nested shape.
"""


def normalize_item(item: dict) -> dict:
    """Return a copy of ``item`` with a ``variant`` object and no top-level color/size."""
    normalized = dict(item)
    variant = dict(normalized.get("variant") or {})

    color = normalized.pop("color", None)
    size = normalized.pop("size", None)
    if "color" not in variant and color is not None:
        variant["color"] = color
    if "size" not in variant and size is not None:
        variant["size"] = size

    normalized["variant"] = variant
    return normalized


def normalize_items(items) -> list[dict]:
    return [normalize_item(item) for item in items or []]
