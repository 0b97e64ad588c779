# Define your item pipelines here
#
# Don't forget to add your pipeline to the ITEM_PIPELINES setting
# See: https://docs.scrapy.org/en/latest/topics/item-pipeline.html
import os
from pathlib import Path

from scrapy.exporters import CsvItemExporter

from storefinder.items import STORE_FIELDS, StoreItem


class SinkError(Exception):
    pass


class StoreCsvItemExporter(CsvItemExporter):
    """CsvItemExporter that also writes the header line when no store was exported."""

    def finish_exporting(self):
        if self._headers_not_written:
            self._headers_not_written = False
            self._write_headers_and_set_fields_to_export(StoreItem())
        super().finish_exporting()


class CsvSinkPipeline:
    """Writes the spider's collected stores to one CSV file when the run finishes.

    The file is replaced on every run. Nothing is written when the run was aborted.
    """

    def __init__(self, path: str):
        self.path = Path(path)
        self.ready = False

    @classmethod
    def from_crawler(cls, crawler):
        return cls(crawler.settings.get("STORES_OUTPUT") or "aldi_locations.csv")

    def open_spider(self, spider):
        # Fail before crawling rather than after
        if self.path.is_dir():
            raise SinkError(f"Output path {self.path} is a directory")
        parent = self.path.parent
        if not parent.is_dir():
            raise SinkError(f"Output directory {parent} does not exist")
        if not os.access(parent, os.W_OK) or (self.path.exists() and not os.access(self.path, os.W_OK)):
            raise SinkError(f"Output path {self.path} is not writable")
        self.ready = True

    def close_spider(self, spider):
        if not self.ready:
            return
        if getattr(spider, "aborted", False):
            spider.logger.warning("Run aborted; not writing %s", self.path)
            return
        stores = list(getattr(spider, "result", []))
        self.write(stores)
        spider.logger.info("Finished writing %d stores to %s", len(stores), self.path)

    def write(self, stores):
        with self.path.open("wb") as f:
            exporter = StoreCsvItemExporter(f, include_headers_line=True, fields_to_export=list(STORE_FIELDS))
            exporter.start_exporting()
            for store in stores:
                exporter.export_item(store)
            exporter.finish_exporting()
