"""
Caching package: conditional request evaluation for proxied modules and bundles.
"""

from .conditional import (
    HEADER_WHITELIST,
    merge_headers,
    not_modified,
    reduce_statuses,
    select_headers,
    parse_http_date,
    format_http_date,
)

__all__ = [
    "HEADER_WHITELIST",
    "merge_headers",
    "not_modified",
    "reduce_statuses",
    "select_headers",
    "parse_http_date",
    "format_http_date",
]
