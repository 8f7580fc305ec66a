from acv_core.kinds import DatasetKind, extract_category, kind_from_slug
from acv_core.records import Record, normalize_row, normalize_rows, records_frame

import pytest


def test_category_field_per_kind():
    row = {"Cust_Type": "New Customer", "Team": "Enterprise", "Acct_Industry": "Retail", "ACV_Range": "$0-$10K"}
    assert extract_category(row, DatasetKind.CUSTOMER_TYPE) == "New Customer"
    assert extract_category(row, DatasetKind.TEAM) == "Enterprise"
    assert extract_category(row, DatasetKind.INDUSTRY) == "Retail"
    assert extract_category(row, DatasetKind.ACV_RANGE) == "$0-$10K"


def test_kind_from_slug():
    assert kind_from_slug("acv-range") is DatasetKind.ACV_RANGE
    assert kind_from_slug(" Teams ") is DatasetKind.TEAM
    with pytest.raises(ValueError):
        kind_from_slug("customers")


def test_missing_category_becomes_empty_string():
    rec = normalize_row({"closed_fiscal_quarter": "2024-Q1", "count": 5, "acv": 10.5}, DatasetKind.INDUSTRY)
    assert rec == Record("2024-Q1", "", 5, 10.5)


def test_non_numeric_values_default_to_zero():
    rec = normalize_row(
        {"closed_fiscal_quarter": "2024-Q1", "Team": "Europe", "count": "n/a", "acv": None},
        DatasetKind.TEAM,
    )
    assert rec.count == 0
    assert rec.acv == 0.0


def test_negative_values_pass_through():
    rec = normalize_row({"closed_fiscal_quarter": "2024-Q1", "Team": "Europe", "count": -2, "acv": -150.0}, DatasetKind.TEAM)
    assert rec.count == -2
    assert rec.acv == -150.0


def test_numeric_strings_are_parsed():
    rec = normalize_row({"closed_fiscal_quarter": "2024-Q1", "Team": "Europe", "count": "4", "acv": "99.5"}, DatasetKind.TEAM)
    assert (rec.count, rec.acv) == (4, 99.5)


def test_rows_without_quarter_are_dropped_and_counted():
    rows = [
        {"closed_fiscal_quarter": "2024-Q1", "Team": "Europe", "count": 1, "acv": 1.0},
        {"Team": "Europe", "count": 1, "acv": 1.0},
        {"closed_fiscal_quarter": "  ", "Team": "Europe"},
        {"closed_fiscal_quarter": None, "Team": "Europe"},
        "not a row",
    ]
    result = normalize_rows(rows, DatasetKind.TEAM)
    assert len(result.records) == 1
    assert result.dropped == 4


def test_records_frame_empty_has_columns():
    df = records_frame([])
    assert list(df.columns) == ["quarter", "category", "count", "acv"]
    assert df.empty


def test_counts_outside_int64_default_to_zero():
    for count in (1e20, -1e20, "100000000000000000000"):
        rec = normalize_row({"closed_fiscal_quarter": "2024-Q1", "Team": "Europe", "count": count, "acv": 5.0}, DatasetKind.TEAM)
        assert rec.count == 0
        assert rec.acv == 5.0
