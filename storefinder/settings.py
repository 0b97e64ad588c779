# Scrapy settings for the storefinder project
#
# Values default from the environment so runs can be configured without editing this file.
# https://docs.scrapy.org/en/latest/topics/settings.html
import os

from storefinder.utility import env_flag, env_int

BOT_NAME = "storefinder"

SPIDER_MODULES = ["storefinder.spiders"]
NEWSPIDER_MODULE = "storefinder.spiders"

STORES_ROOT_URL = os.getenv("STORES_ROOT_URL", "https://store.aldi.com.au/")
STORES_OUTPUT = os.getenv("STORES_OUTPUT", "aldi_locations.csv")
STORES_RENDER_JS = env_flag("STORES_RENDER_JS", True)
STORES_PROGRESS = env_flag("STORES_PROGRESS", True)
STORES_WAIT_UNTIL = os.getenv("STORES_WAIT_UNTIL", "load")

LOG_LEVEL = os.getenv("STORES_LOGLEVEL", "INFO")

# One page at a time through one browser session
CONCURRENT_REQUESTS = 1
CONCURRENT_REQUESTS_PER_DOMAIN = 1
SCHEDULER_MEMORY_QUEUE = "scrapy.squeues.FifoMemoryQueue"
SCHEDULER_DISK_QUEUE = "scrapy.squeues.PickleFifoDiskQueue"

DOWNLOAD_TIMEOUT = env_int("STORES_TIMEOUT", 30)
RETRY_ENABLED = False
ROBOTSTXT_OBEY = False
COOKIES_ENABLED = True

DOWNLOADER_MIDDLEWARES = {
    "storefinder.middlewares.RenderMiddleware": 543,
}

ITEM_PIPELINES = {
    "storefinder.pipelines.CsvSinkPipeline": 800,
}

# Headless Chromium via scrapy-playwright
TWISTED_REACTOR = "twisted.internet.asyncioreactor.AsyncioSelectorReactor"
PLAYWRIGHT_BROWSER_TYPE = "chromium"
PLAYWRIGHT_LAUNCH_OPTIONS = {"headless": True}
PLAYWRIGHT_MAX_CONTEXTS = 1
PLAYWRIGHT_MAX_PAGES_PER_CONTEXT = 1
PLAYWRIGHT_DEFAULT_NAVIGATION_TIMEOUT = DOWNLOAD_TIMEOUT * 1000

PLAYWRIGHT_HANDLERS = {
    "http": "scrapy_playwright.handler.ScrapyPlaywrightDownloadHandler",
    "https": "scrapy_playwright.handler.ScrapyPlaywrightDownloadHandler",
}
DOWNLOAD_HANDLERS = PLAYWRIGHT_HANDLERS if STORES_RENDER_JS else {}

FEED_EXPORT_ENCODING = "utf-8"
