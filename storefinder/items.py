# Define here the models for your scraped items
#
# See documentation in:
# https://docs.scrapy.org/en/latest/topics/items.html

import scrapy

# Column order of the CSV sink
STORE_FIELDS = ("name", "street", "suburb", "state", "postcode", "latitude", "longitude")


class StoreItem(scrapy.Item):
    # Every field is a string; a value missing on the page is "" rather than None
    name = scrapy.Field()       # hero heading, e.g. "ALDI Bondi Junction"
    street = scrapy.Field()     # address line 1
    suburb = scrapy.Field()     # address city
    state = scrapy.Field()      # address region, e.g. "NSW"
    postcode = scrapy.Field()

    # Coordinates as published in the page microdata, kept as text
    latitude = scrapy.Field()
    longitude = scrapy.Field()
