"""
Query string building for the core module.

Translates QueryOptions into the remote API's reserved OData parameters.
"""

from .models import QueryOptions

RESERVED_PARAMS = {
    "select": "$select",
    "filter": "$filter",
    "orderby": "$orderby",
    "top": "$top",
    "skip": "$skip",
    "expand": "$expand",
}

# a single item only accepts field selection and expansion
SINGLE_ITEM_OPTIONS = ("select", "expand")


def _serialize(value) -> str:
    if isinstance(value, (list, tuple)):
        return ",".join(str(v) for v in value)
    return str(value)


def build_query_params(options: QueryOptions | None, single_item: bool = False) -> dict[str, str]:
    """Build the query parameters for a request, skipping unset options."""
    if options is None:
        return {}
    names = SINGLE_ITEM_OPTIONS if single_item else tuple(RESERVED_PARAMS)
    params = {}
    for name in names:
        value = getattr(options, name)
        if value is None or (isinstance(value, (list, tuple)) and not value):
            continue
        params[RESERVED_PARAMS[name]] = _serialize(value)
    if options.params and not single_item:
        params.update({key: _serialize(value) for key, value in options.params.items()})
    return params
