import argparse
import logging
import sys
from typing import Any, Dict, List, Optional

from scrapy.crawler import CrawlerProcess
from scrapy.settings import Settings

from storefinder.items import StoreItem
from storefinder.settings import PLAYWRIGHT_HANDLERS
from storefinder.spiders.stores import StoreSpider

logger = logging.getLogger("storefinder")


class CrawlAborted(Exception):
    pass


def build_settings(overrides: Optional[Dict[str, Any]] = None):
    settings = Settings()
    settings.setmodule("storefinder.settings", priority="project")
    for key, value in (overrides or {}).items():
        settings.set(key, value, priority="cmdline")
    if "STORES_RENDER_JS" in (overrides or {}):
        handlers = PLAYWRIGHT_HANDLERS if settings.getbool("STORES_RENDER_JS") else {}
        settings.set("DOWNLOAD_HANDLERS", handlers, priority="cmdline")
    if "DOWNLOAD_TIMEOUT" in (overrides or {}):
        settings.set("PLAYWRIGHT_DEFAULT_NAVIGATION_TIMEOUT", settings.getint("DOWNLOAD_TIMEOUT") * 1000, priority="cmdline")
    return settings


def run(root_url: Optional[str] = None, output: Optional[str] = None, overrides: Optional[Dict[str, Any]] = None) -> List[StoreItem]:
    """Crawl the directory at ``root_url`` and return the stores in visit order.

    Raises CrawlAborted when the root page or the output file is unusable; the
    CSV is not written in that case.
    """
    overrides = dict(overrides or {})
    if output:
        overrides["STORES_OUTPUT"] = output
    process = CrawlerProcess(build_settings(overrides))
    crawler = process.create_crawler(StoreSpider)

    failures = []
    d = process.crawl(crawler, root_url=root_url)
    d.addErrback(failures.append)
    process.start()

    spider = crawler.spider
    if failures:
        raise CrawlAborted(failures[0].getErrorMessage())
    if spider is None:
        raise CrawlAborted("spider never started")
    if spider.aborted:
        raise CrawlAborted(spider.close_reason or "aborted")
    return spider.result


def main(argv=None):
    ap = argparse.ArgumentParser(description="Crawl a store directory into a CSV of store locations.")
    ap.add_argument("--root-url", help="directory page to start from (default: STORES_ROOT_URL)")
    ap.add_argument("--output", help="CSV file to write (default: STORES_OUTPUT)")
    ap.add_argument("--timeout", type=int, help="per-page navigation timeout in seconds")
    ap.add_argument("--no-render", action="store_true", help="parse static HTML instead of rendering with Playwright")
    ap.add_argument("--no-progress", action="store_true", help="hide the progress bar")
    ap.add_argument("--log-level", help="DEBUG, INFO, WARNING, ...")
    args = ap.parse_args(argv)

    overrides: Dict[str, Any] = {}
    if args.timeout:
        overrides["DOWNLOAD_TIMEOUT"] = args.timeout
    if args.no_render:
        overrides["STORES_RENDER_JS"] = False
    if args.no_progress:
        overrides["STORES_PROGRESS"] = False
    if args.log_level:
        overrides["LOG_LEVEL"] = args.log_level.upper()

    try:
        run(root_url=args.root_url, output=args.output, overrides=overrides)
    except CrawlAborted as e:
        logger.error("Error during scraping: %s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
