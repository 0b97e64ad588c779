from typing import Optional

from tqdm import tqdm


class NullProgress:
    def set_total(self, total: int):
        pass

    def tick(self):
        pass

    def close(self):
        pass


class TqdmProgress:
    """Progress bar over leaf URLs. The total is known once the region pages are read."""

    def __init__(self, desc: str = "Scraping", unit: str = "page"):
        self.desc = desc
        self.unit = unit
        self.bar: Optional[tqdm] = None

    def set_total(self, total: int):
        if self.bar is not None:
            return
        self.bar = tqdm(total=total, desc=self.desc, unit=self.unit)

    def tick(self):
        if self.bar is not None:
            self.bar.update(1)

    def close(self):
        if self.bar is not None:
            self.bar.close()
            self.bar = None


def progress_from_settings(settings):
    if settings.getbool("STORES_PROGRESS", True):
        return TqdmProgress()
    return NullProgress()
