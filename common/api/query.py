"""Query-string helpers for list endpoints: integer filters and sorting."""

from rest_framework.exceptions import ValidationError

DIRECTIONS = ("asc", "desc")


def int_filter(params, name):
    """Return the integer value of a filter param, None when absent or blank."""
    raw = params.get(name)
    if raw in (None, ""):
        return None
    if not str(raw).isdigit():
        raise ValidationError({name: "Must be an integer."})
    return int(raw)


def number_filter(params, name):
    raw = params.get(name)
    if raw in (None, ""):
        return None
    try:
        return float(raw)
    except (TypeError, ValueError):
        raise ValidationError({name: "Must be a number."})


def apply_sort(qs, params, allowed, default):
    """Order `qs` by the `sort`/`direction` params.

    `allowed` maps public sort names to ORM field names; `default` is the
    ordering used when no `sort` param is given. Ties are broken by id in the
    same direction so pages never overlap.
    """
    sort = params.get("sort")
    if not sort:
        return qs.order_by(*default)
    if sort not in allowed:
        raise ValidationError({"sort": f"Allowed values: {', '.join(allowed)}."})

    direction = (params.get("direction") or "asc").lower()
    if direction not in DIRECTIONS:
        raise ValidationError({"direction": "Allowed values: asc, desc."})

    prefix = "-" if direction == "desc" else ""
    field = allowed[sort]
    if field == "id":
        return qs.order_by(f"{prefix}id")
    return qs.order_by(f"{prefix}{field}", f"{prefix}id")
