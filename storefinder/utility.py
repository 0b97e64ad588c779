import os
from typing import List

from scrapy.http import Response, TextResponse

TRUTHY = {"1", "true", "yes", "on"}


def env_flag(name: str, default: bool = False):
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in TRUTHY


def env_int(name: str, default: int):
    raw = (os.getenv(name) or "").strip()
    try:
        return int(raw) if raw else default
    except ValueError:
        return default


def is_queryable(response: Response):
    return isinstance(response, TextResponse)


def text_at(response: Response, selector: str):
    """Text content of the first element matching ``selector``, trimmed; "" if absent."""
    return (response.css(selector).xpath("string()").get() or "").strip()


def attr_at(response: Response, selector: str, attr: str):
    return (response.css(f"{selector}::attr({attr})").get() or "").strip()


def absolute_hrefs(response: Response, selector: str):
    out: List[str] = []
    for href in response.css(f"{selector}::attr(href)").getall():
        href = href.strip()
        if not href:
            continue
        out.append(response.urljoin(href))
    return out


def unique_preserve(seq):
    seen = set()
    out = []
    for x in seq:
        if x not in seen:
            seen.add(x)
            out.append(x)
    return out
