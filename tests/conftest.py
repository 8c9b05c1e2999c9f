from datetime import date

import pytest

from gstbook.models.item import LineItem
from gstbook.models.party import BusinessDetails, ClientDetails, Vendor
from gstbook.models.product import Product


@pytest.fixture
def business():
    return BusinessDetails(name="Sono Traders", gstin="27AAAAA0000A1Z5", address="Pune")


@pytest.fixture
def client():
    return ClientDetails(name="Acme Pvt Ltd", gstin="29BBBBB1111B1Z2", address="Bengaluru")


@pytest.fixture
def vendor():
    return Vendor(name="Paper Mills", address="Nashik")


@pytest.fixture
def widget():
    return Product(name="Widget", hsn="8471", price=100, track_stock=True, stock=10, low_stock_threshold=3)


def line(description="Widget", quantity=1, unit_price=100, gst_rate=18, hsn="8471"):
    return LineItem(description=description, hsn=hsn, quantity=quantity, unit_price=unit_price, gst_rate=gst_rate)


@pytest.fixture
def jan_first():
    return date(2024, 1, 1)
