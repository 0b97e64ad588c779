import types

import pytest
from scrapy import Request
from scrapy.exceptions import CloseSpider
from scrapy.http import HtmlResponse
from scrapy.settings import Settings
from scrapy.signalmanager import SignalManager
from scrapy.statscollectors import MemoryStatsCollector
from twisted.internet.error import ConnectionRefusedError
from twisted.python.failure import Failure

from storefinder.pipelines import CsvSinkPipeline
from storefinder.spiders.stores import StoreSpider

ROOT = "https://stores.example.com.au/"

STORE_FIELDS_HTML = {
    "name": '<h1 class="Heading Hero-heading" id="location-name">{}</h1>',
    "street": '<span class="Address-field Address-line1">{}</span>',
    "suburb": '<span class="Address-field Address-city">{}</span>',
    "state": '<abbr class="Address-field Address-region">{}</abbr>',
    "postcode": '<span class="Address-field Address-postalCode">{}</span>',
}


def store_page(**fields):
    """HTML for a store page; only the fields given are present."""
    heading = STORE_FIELDS_HTML["name"].format(fields["name"]) if "name" in fields else ""
    address = "".join(
        STORE_FIELDS_HTML[k].format(fields[k]) for k in ("street", "suburb", "state", "postcode") if k in fields
    )
    metas = "".join(
        f'<meta itemprop="{k}" content="{fields[k]}">' for k in ("latitude", "longitude") if k in fields
    )
    return (
        "<html><body><main>"
        f"{heading}"
        f'<address class="Address"><div class="Address-line">{address}</div></address>'
        f'<span itemprop="geo">{metas}</span>'
        "</main></body></html>"
    )


def directory_page(*hrefs):
    links = "".join(f'<li><a class="Directory-listLink" href="{h}">link</a></li>' for h in hrefs)
    return f'<html><body><ul class="Directory-listItems">{links}</ul></body></html>'


def teaser_page(*hrefs):
    teasers = "".join(
        f'<li class="Teaser"><h2 class="Teaser-title"><a class="Teaser-titleLink" href="{h}">Store</a></h2></li>'
        for h in hrefs
    )
    return f'<html><body><h1 class="Heading">Stores in this suburb</h1><ul>{teasers}</ul></body></html>'


def html_response(url, body, request=None):
    return HtmlResponse(url=url, body=body.encode("utf-8"), encoding="utf-8", request=request)


class RecordingProgress:
    def __init__(self):
        self.totals = []
        self.ticks = 0
        self.closed = False

    def set_total(self, total):
        self.totals.append(total)

    def tick(self):
        self.ticks += 1

    def close(self):
        self.closed = True


class FakeSite:
    """Serves canned pages to a spider one request at a time.

    ``pages`` maps URL -> HTML string, or an exception instance to fail that request.
    Unknown URLs fail with ConnectionRefusedError.
    """

    def __init__(self, pages):
        self.pages = pages
        self.visited = []

    def run(self, spider, pipeline=None):
        if pipeline is not None:
            pipeline.open_spider(spider)
        queue = list(spider.start_requests())
        items = []
        reason = "finished"
        while queue:
            request = queue.pop(0)
            self.visited.append(request.url)
            page = self.pages.get(request.url, ConnectionRefusedError())
            try:
                if isinstance(page, Exception):
                    failure = Failure(page)
                    failure.request = request
                    output = request.errback(failure)
                else:
                    output = request.callback(html_response(request.url, page, request), **request.cb_kwargs)
                for out in output or []:
                    if isinstance(out, Request):
                        queue.append(out)
                    else:
                        items.append(out)
            except CloseSpider as e:
                reason = e.reason
                break
        if pipeline is not None:
            pipeline.close_spider(spider)
        spider.closed(reason)
        return items


@pytest.fixture
def crawler():
    settings = Settings({"STATS_DUMP": False, "STORES_PROGRESS": False, "STORES_RENDER_JS": False})
    crawler = types.SimpleNamespace(settings=settings, signals=SignalManager())
    crawler.stats = MemoryStatsCollector(crawler)
    return crawler


@pytest.fixture
def progress():
    return RecordingProgress()


@pytest.fixture
def spider(crawler, progress):
    return StoreSpider.from_crawler(crawler, root_url=ROOT, progress=progress)


@pytest.fixture
def sink(tmp_path):
    return CsvSinkPipeline(str(tmp_path / "stores.csv"))
