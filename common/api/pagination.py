"""Envelope pagination shared by every list endpoint.

The canonical parameters are `page` and `limit`; the legacy offset form
`start`/`length` is still accepted. Without any pagination parameter the
whole (filtered) set is returned, which is what option lookups use.
"""

import math

from rest_framework.exceptions import ValidationError
from rest_framework.pagination import BasePagination
from rest_framework.response import Response


def _int_param(params, name, default, minimum, maximum=None):
    raw = params.get(name)
    if raw in (None, ""):
        return default
    if not str(raw).isdigit():
        raise ValidationError({name: "Must be an integer."})
    value = int(raw)
    if value < minimum or (maximum is not None and value > maximum):
        bound = f">= {minimum}" if maximum is None else f"between {minimum} and {maximum}"
        raise ValidationError({name: f"Must be {bound}."})
    return value


class EnvelopePagination(BasePagination):
    """Return `{data, total, recordsTotal, recordsFiltered, meta}` envelopes."""

    default_limit = 10
    max_limit = 100

    def paginate_queryset(self, queryset, request, view=None):
        params = request.query_params
        self.total = queryset.count()
        count_all = getattr(view, "count_unfiltered", None)
        self.records_total = count_all() if count_all else self.total

        offset, self.limit = self._window(params)
        if self.limit is None:
            self.page = 1
            return list(queryset)
        self.page = offset // self.limit + 1
        return list(queryset[offset:offset + self.limit])

    def _window(self, params):
        if "page" in params or "limit" in params:
            page = _int_param(params, "page", 1, 1)
            limit = _int_param(params, "limit", self.default_limit, 1, self.max_limit)
            return (page - 1) * limit, limit
        if "start" in params or "length" in params:
            start = _int_param(params, "start", 0, 0)
            length = _int_param(params, "length", self.default_limit, 1, self.max_limit)
            return start, length
        return 0, None

    def get_paginated_response(self, data):
        per_page = self.limit or max(self.total, 1)
        return Response(
            {
                "data": data,
                "total": self.total,
                "recordsTotal": self.records_total,
                "recordsFiltered": self.total,
                "meta": {
                    "current_page": self.page,
                    "last_page": max(1, math.ceil(self.total / per_page)),
                    "per_page": per_page,
                },
            }
        )
