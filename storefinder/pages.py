import enum
import logging
from typing import List, Optional

from scrapy.exceptions import NotSupported
from scrapy.http import Response

from storefinder.items import StoreItem
from storefinder.utility import absolute_hrefs, attr_at, is_queryable, text_at

logger = logging.getLogger(__name__)

# Only store pages carry the hero heading with the location name
RECORD_MARKER = "h1.Heading.Hero-heading#location-name"

DIRECTORY_LINK = ".Directory-listLink"
TEASER_LINK = ".Teaser-titleLink"

TEXT_FIELDS = {
    "name": ".Heading.Hero-heading#location-name",
    "street": ".Address-line .Address-field.Address-line1",
    "suburb": ".Address-line .Address-field.Address-city",
    "state": ".Address-line .Address-field.Address-region",
    "postcode": ".Address-line .Address-field.Address-postalCode",
}
META_FIELDS = {
    "latitude": 'meta[itemprop="latitude"]',
    "longitude": 'meta[itemprop="longitude"]',
}


class PageKind(enum.Enum):
    RECORD = "record"
    LISTING = "listing"


def classify(response: Response):
    if is_queryable(response) and response.css(RECORD_MARKER):
        return PageKind.RECORD
    return PageKind.LISTING


def collect_links(response: Response, selector: str) -> List[str]:
    """Absolute targets of every anchor matching ``selector``, in document order.

    A page that cannot be queried (binary body) has no links.
    """
    if not is_queryable(response):
        logger.warning("Cannot read links from non-text page %s", response.url)
        return []
    return absolute_hrefs(response, selector)


def expand(response: Response) -> List[str]:
    return collect_links(response, TEASER_LINK)


def extract_store(response: Response) -> Optional[StoreItem]:
    """Read one store from a rendered store page.

    Each field falls back to "" on its own. Only a fault reading the document
    itself gives None, and that fault is logged here rather than raised.
    """
    try:
        item = StoreItem()
        for field, selector in TEXT_FIELDS.items():
            item[field] = text_at(response, selector)
        for field, selector in META_FIELDS.items():
            item[field] = attr_at(response, selector, "content")
        return item
    except (NotSupported, ValueError, AttributeError) as e:
        logger.warning("Error scraping store page %s: %s", getattr(response, "url", "?"), e)
        return None
