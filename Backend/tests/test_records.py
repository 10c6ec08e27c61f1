"""
Record validation and repair tests.
"""

import logging
from decimal import Decimal

from storefront.catalog import MalformedRecordError, repair_records, validate_record
from storefront.catalog.records import DEFAULT_CATEGORY_LABEL, PLACEHOLDER_IMAGE, coerce_number


class TestValidateRecord:

    def test_valid_record(self, record_factory):
        item = validate_record(record_factory("s1", "Masala Chai", "Tea", 3.0))

        assert item.id == "s1"
        assert item.name == "Masala Chai"
        assert item.category == "Tea"
        assert item.price == 3.0
        assert item.image == "/img/s1.png"
        assert item.promoted is False

    def test_missing_id_is_malformed(self, record_factory):
        result = validate_record(record_factory(None, "Nameless Id"))

        assert isinstance(result, MalformedRecordError)
        assert result.reason == "missing id"

    def test_blank_name_is_malformed(self, record_factory):
        result = validate_record(record_factory("x1", "   "))

        assert isinstance(result, MalformedRecordError)
        assert result.record_id == "x1"

    def test_missing_price_is_malformed(self, record_factory):
        assert isinstance(validate_record(record_factory("x2", "Free", price=None)), MalformedRecordError)
        assert isinstance(validate_record(record_factory("x3", "Odd", price="abc")), MalformedRecordError)
        assert isinstance(validate_record(record_factory("x4", "Inf", price=float("inf"))), MalformedRecordError)

    def test_numeric_string_and_decimal_prices(self, record_factory):
        assert validate_record(record_factory("a", "A", price="2.50")).price == 2.5
        assert validate_record(record_factory("b", "B", price=Decimal("3.80"))).price == 3.8

    def test_missing_category_gets_default_label(self, record_factory):
        item = validate_record(record_factory("a", "A", category=None))
        assert item.category == DEFAULT_CATEGORY_LABEL

    def test_joined_category_name_wins(self, record_factory):
        item = validate_record(record_factory("a", "A", category="Old", category_name="Hot Drinks"))
        assert item.category == "Hot Drinks"

    def test_missing_image_gets_placeholder(self, record_factory):
        item = validate_record(record_factory("a", "A", image=""))
        assert item.image == PLACEHOLDER_IMAGE

    def test_custom_defaults(self, record_factory):
        item = validate_record(
            record_factory("a", "A", category="", image=None),
            default_category="Misc",
            placeholder_image="/none.png",
        )
        assert (item.category, item.image) == ("Misc", "/none.png")

    def test_offer_price_kept_only_below_price(self, record_factory):
        assert validate_record(record_factory("a", "A", price=3.8, offer_price=3.2)).offer_price == 3.2
        assert validate_record(record_factory("b", "B", price=3.8, offer_price=4.0)).offer_price is None
        assert validate_record(record_factory("c", "C", price=3.8, offer_price=0)).offer_price is None

    def test_description_falls_back_to_category(self, record_factory):
        assert validate_record(record_factory("a", "A", "Tea")).description == "Tea"
        assert validate_record(record_factory("b", "B", description="Spiced")).description == "Spiced"

    def test_to_dict_shape(self, record_factory):
        data = validate_record(record_factory("f2", "Cappuccino", price=3.8, offer_price=3.2, is_featured=True)).to_dict()

        assert data["isFeatured"] is True
        assert data["offerPrice"] == 3.2
        assert "offerPrice" not in validate_record(record_factory("a", "A")).to_dict()


class TestRepairRecords:

    def test_drops_malformed_and_keeps_order(self, record_factory, caplog):
        records = [
            record_factory("a", "A"),
            record_factory("b", None),
            record_factory("c", "C", price="n/a"),
            record_factory("d", "D"),
        ]

        with caplog.at_level(logging.WARNING, logger="storefront.catalog.records"):
            items = repair_records(records)

        assert [item.id for item in items] == ["a", "d"]
        assert "Dropped 2 malformed catalog record(s)" in caplog.text

    def test_no_warning_when_clean(self, record_factory, caplog):
        with caplog.at_level(logging.WARNING, logger="storefront.catalog.records"):
            repair_records([record_factory("a", "A")])
        assert caplog.text == ""


def test_coerce_number_rejects_bools():
    assert coerce_number(True) is None
    assert coerce_number(" 4 ") == 4.0
