# Define here the models for your downloader middleware
#
# See documentation in:
# https://docs.scrapy.org/en/latest/topics/downloader-middleware.html
from scrapy import signals
from scrapy.exceptions import NotConfigured


class RenderMiddleware:
    """Sends every request through the headless browser so callbacks see the rendered DOM."""

    def __init__(self, timeout_ms: int, wait_until: str = "load"):
        self.timeout_ms = timeout_ms
        self.wait_until = wait_until

    @classmethod
    def from_crawler(cls, crawler):
        if not crawler.settings.getbool("STORES_RENDER_JS"):
            raise NotConfigured("STORES_RENDER_JS is off")
        mw = cls(
            timeout_ms=crawler.settings.getint("DOWNLOAD_TIMEOUT", 30) * 1000,
            wait_until=crawler.settings.get("STORES_WAIT_UNTIL", "load"),
        )
        crawler.signals.connect(mw.spider_opened, signal=signals.spider_opened)
        return mw

    def process_request(self, request, spider):
        request.meta.setdefault("playwright", True)
        request.meta.setdefault(
            "playwright_page_goto_kwargs",
            {"wait_until": self.wait_until, "timeout": self.timeout_ms},
        )
        return None

    def spider_opened(self, spider):
        spider.logger.info("Rendering pages with Playwright (wait_until=%s, timeout=%dms)", self.wait_until, self.timeout_ms)
