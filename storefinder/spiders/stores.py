import enum
from collections import deque
from typing import Deque, List, Optional

import scrapy
from scrapy.exceptions import CloseSpider

from storefinder.items import StoreItem
from storefinder.pages import DIRECTORY_LINK, PageKind, classify, collect_links, expand, extract_store
from storefinder.progress import progress_from_settings
from storefinder.utility import unique_preserve


class Tier(enum.Enum):
    DIRECTORY = "directory"
    REGION = "region"
    LEAF = "leaf"
    STORE = "store"


CHILD_TIER = {
    Tier.DIRECTORY: Tier.REGION,
    Tier.REGION: Tier.LEAF,
    Tier.LEAF: Tier.STORE,
}

FAILED_STAT = {
    Tier.REGION: "stores/regions_failed",
    Tier.LEAF: "stores/leaves_failed",
    Tier.STORE: "stores/store_pages_failed",
}


class StoreSpider(scrapy.Spider):
    """Walks a store directory: root -> regions -> leaf pages -> (store pages).

    A leaf page is either a store page itself or a listing of store teasers.
    Leaves and their store pages are fetched strictly one after another, so
    stores come out in visit order. Anything that fails below the root is
    logged and skipped.
    """

    name = "stores"

    handlers = {
        Tier.DIRECTORY: "parse_directory",
        Tier.REGION: "parse_region",
        Tier.LEAF: "parse_leaf",
        Tier.STORE: "parse_store",
    }

    def __init__(self, root_url=None, progress=None, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.root_url = root_url
        self.progress = progress
        self.result: List[StoreItem] = []
        self.leaf_urls: List[str] = []
        self.leaf_index = -1
        self.store_queue: Deque[str] = deque()
        self.pending_regions = 0
        self.aborted = False
        self.close_reason: Optional[str] = None

    @classmethod
    def from_crawler(cls, crawler, *args, **kwargs):
        spider = super().from_crawler(crawler, *args, **kwargs)
        if not spider.root_url:
            spider.root_url = crawler.settings.get("STORES_ROOT_URL")
        if not spider.root_url:
            raise ValueError("No root URL configured (set STORES_ROOT_URL or pass -a root_url=...)")
        if spider.progress is None:
            spider.progress = progress_from_settings(crawler.settings)
        return spider

    def page_request(self, url: str, tier: Tier):
        # Below the root every listed occurrence is settled exactly once, so nothing may be filtered
        return scrapy.Request(
            url,
            callback=self.parse,
            errback=self.on_page_error,
            cb_kwargs={"tier": tier},
            dont_filter=tier is not Tier.DIRECTORY,
        )

    async def start(self):
        yield self.page_request(self.root_url, Tier.DIRECTORY)

    def start_requests(self):
        # Scrapy < 2.13 does not call start()
        yield self.page_request(self.root_url, Tier.DIRECTORY)

    def parse(self, response, tier=Tier.DIRECTORY, **kwargs):
        yield from getattr(self, self.handlers[tier])(response)

    def parse_directory(self, response):
        region_urls = unique_preserve(collect_links(response, DIRECTORY_LINK))
        self.logger.info("Found %d regions on %s", len(region_urls), response.url)
        self.pending_regions = len(region_urls)
        if not region_urls:
            yield from self.start_leaf_stage()
            return
        for url in region_urls:
            yield self.page_request(url, CHILD_TIER[Tier.DIRECTORY])

    def parse_region(self, response):
        urls = collect_links(response, DIRECTORY_LINK)
        self.logger.info("Scraped region page %s (%d links)", response.url, len(urls))
        self.leaf_urls.extend(urls)
        yield from self.region_settled()

    def region_settled(self):
        self.pending_regions -= 1
        if self.pending_regions == 0:
            yield from self.start_leaf_stage()

    def start_leaf_stage(self):
        self.logger.info("Found %d suburb or store URLs", len(self.leaf_urls))
        self.progress.set_total(len(self.leaf_urls))
        yield from self.next_leaf()

    def next_leaf(self):
        self.leaf_index += 1
        if self.leaf_index < len(self.leaf_urls):
            yield self.page_request(self.leaf_urls[self.leaf_index], CHILD_TIER[Tier.REGION])

    def next_page(self):
        """Request the next store of the current leaf, or finish the leaf and move on."""
        if self.store_queue:
            yield self.page_request(self.store_queue.popleft(), CHILD_TIER[Tier.LEAF])
            return
        self.progress.tick()
        yield from self.next_leaf()

    def parse_leaf(self, response):
        if classify(response) is PageKind.RECORD:
            self.crawler.stats.inc_value("stores/record_leaves")
            yield from self.emit(extract_store(response), response.url)
        else:
            store_urls = expand(response)
            self.crawler.stats.inc_value("stores/listing_leaves")
            self.logger.debug("Listing %s expands to %d stores", response.url, len(store_urls))
            self.store_queue.extend(store_urls)
        yield from self.next_page()

    def parse_store(self, response):
        yield from self.emit(extract_store(response), response.url)
        yield from self.next_page()

    def emit(self, item: Optional[StoreItem], url: str):
        if item is None:
            self.crawler.stats.inc_value("stores/extract_failed")
            self.logger.warning("No store extracted from %s", url)
            return
        self.result.append(item)
        self.crawler.stats.inc_value("stores/scraped")
        yield item

    def on_page_error(self, failure):
        request = failure.request
        tier = (request.cb_kwargs or {}).get("tier", Tier.DIRECTORY)
        reason = getattr(failure.value, "__class__", type(failure.value)).__name__

        if tier is Tier.DIRECTORY:
            self.aborted = True
            self.logger.error("Root directory %s unreachable (%s); aborting run", request.url, reason)
            raise CloseSpider("root_unreachable")

        self.logger.warning("%s request failed for %s (%s); skipping", tier.value.capitalize(), request.url, reason)
        self.crawler.stats.inc_value(FAILED_STAT[tier])

        if tier is Tier.REGION:
            return list(self.region_settled())
        return list(self.next_page())

    def closed(self, reason):
        self.close_reason = reason
        if self.progress is not None:
            self.progress.close()
        if not self.aborted:
            self.logger.info("Total stores scraped: %d", len(self.result))
