"""
Conditional request evaluation and header merging for bundles.

A bundle is only as fresh as its stalest member, so merged headers take the
latest `date` and `last-modified`, the earliest `expires` and the smallest
`max-age`. A header is merged only when every member supplies a parseable
value; otherwise it is left out entirely.
"""

from datetime import datetime, timezone
from email.utils import format_datetime, parsedate_to_datetime
from typing import Dict, Iterable, List, Mapping, Optional, Sequence
import hashlib
import re

HEADER_WHITELIST = ("date", "last-modified", "expires", "cache-control", "content-type")

MAX_AGE_PATTERN = re.compile(r"(?:^|[,\s])max-age=(\d+)", re.IGNORECASE)


def parse_http_date(value: Optional[str]) -> Optional[datetime]:
    """Parse an RFC 7231 date, `None` when absent or unparseable."""
    if not value:
        return None
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_http_date(value: datetime) -> str:
    return format_datetime(value.astimezone(timezone.utc), usegmt=True)


def parse_max_age(value: Optional[str]) -> Optional[int]:
    if not value:
        return None
    match = MAX_AGE_PATTERN.search(value)
    return int(match.group(1)) if match else None


def select_headers(headers: Mapping[str, str], names: Iterable[str]) -> Dict[str, str]:
    """Copy the whitelisted headers present in `headers`."""
    return {name: headers[name] for name in names if name in headers}


def reduce_statuses(statuses: Sequence[int]) -> Optional[int]:
    """The status shared by every response, `None` when they disagree."""
    if not statuses:
        return None
    first = statuses[0]
    return first if all(status == first for status in statuses) else None


def _all_parsed(values: List[Optional[object]]) -> bool:
    return bool(values) and all(value is not None for value in values)


def merge_headers(*header_sets: Mapping[str, str]) -> Dict[str, str]:
    """Conjunctive merge of the caching headers of several responses."""
    merged: Dict[str, str] = {}

    dates = [parse_http_date(headers.get("date")) for headers in header_sets]
    if _all_parsed(dates):
        merged["date"] = format_http_date(max(dates))

    modified = [parse_http_date(headers.get("last-modified")) for headers in header_sets]
    if _all_parsed(modified):
        merged["last-modified"] = format_http_date(max(modified))

    expires = [parse_http_date(headers.get("expires")) for headers in header_sets]
    if _all_parsed(expires):
        merged["expires"] = format_http_date(min(expires))

    max_ages = [parse_max_age(headers.get("cache-control")) for headers in header_sets]
    if _all_parsed(max_ages):
        merged["cache-control"] = f"max-age={min(max_ages)}"

    etags = [headers.get("etag") for headers in header_sets]
    if _all_parsed(etags):
        if len(etags) == 1:
            merged["etag"] = etags[0]
        else:
            digest = hashlib.sha1("\n".join(sorted(etags)).encode("utf-8")).hexdigest()
            merged["etag"] = f'W/"{digest}"'

    return merged


def not_modified(request_headers: Mapping[str, str], response_headers: Mapping[str, str]) -> bool:
    """Whether the client's cached copy is still current."""
    etag = request_headers.get("etag")
    if etag and etag == response_headers.get("etag"):
        return True

    last_modified = parse_http_date(response_headers.get("last-modified"))
    modified_since = parse_http_date(request_headers.get("if-modified-since"))
    return bool(last_modified and modified_since and last_modified <= modified_since)
