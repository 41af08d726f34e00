"""
Row mapping tests (tests/test_records.py)

Sheet ranges arrive as lists of string cells; these tests pin down the
prefix-number parsing and the fixed column layouts.
"""
import pandas as pd
import pytest

from core.records import (
    CAMPAIGNS,
    MONTHLY,
    SERVICES,
    layout_columns,
    parse_float,
    parse_int,
    rows_to_frame,
    to_wire_records,
)


class TestParseInt:
    @pytest.mark.parametrize(
        "cell,expected",
        [
            ("12800", 12800),
            (" 42 ", 42),
            ("-5", -5),
            ("+7", 7),
            ("12,800", 12),
            ("12.7", 12),
            ("85 hours", 85),
            (14000, 14000),
            (3.9, 3),
            (-3.9, -3),
        ],
    )
    def test_parses_leading_integer(self, cell, expected):
        assert parse_int(cell) == expected

    @pytest.mark.parametrize("cell", ["", "   ", "abc", "SAR 100", None, float("nan"), True, "\u0661\u0662"])
    def test_unparseable_is_missing(self, cell):
        assert parse_int(cell) is None


class TestParseFloat:
    @pytest.mark.parametrize(
        "cell,expected",
        [("9.74", 9.74), ("9.74 SAR", 9.74), (".5", 0.5), ("13", 13.0), ("1e2", 100.0), (6.39, 6.39)],
    )
    def test_parses_leading_number(self, cell, expected):
        assert parse_float(cell) == pytest.approx(expected)

    @pytest.mark.parametrize("cell", ["", "n/a", None, "\u0669.5"])
    def test_unparseable_is_missing(self, cell):
        assert parse_float(cell) is None


class TestRowsToFrame:
    def test_monthly_layout_and_dtypes(self):
        df = rows_to_frame(MONTHLY, [["Sep", "12800", "14000", "85", "100", "20"]])
        assert list(df.columns) == layout_columns(MONTHLY)
        assert str(df["income"].dtype) == "Int64"
        assert df.loc[0, "month"] == "Sep"
        assert df.loc[0, "hour_target"] == 100

    def test_short_row_fills_missing(self):
        df = rows_to_frame(MONTHLY, [["Nov", "13700", "14000", "90"]])
        assert df.loc[0, "hours"] == 90
        assert pd.isna(df.loc[0, "hour_target"])
        assert pd.isna(df.loc[0, "operational"])

    def test_extra_cells_ignored(self):
        df = rows_to_frame(SERVICES, [["Workshops", "5", "ignored", "also ignored"]])
        assert list(df.columns) == ["name", "value"]
        assert df.loc[0, "value"] == 5

    def test_campaign_cpl_is_float(self):
        df = rows_to_frame(CAMPAIGNS, [["Campaign 1", "799", "82", "9.74", "468"]])
        assert df["cpl"].dtype == "float64"
        assert df.loc[0, "cpl"] == pytest.approx(9.74)
        assert df.loc[0, "profile_visits"] == 468

    @pytest.mark.parametrize("rows", [None, []])
    def test_no_rows_gives_empty_frame_with_layout(self, rows):
        df = rows_to_frame(CAMPAIGNS, rows)
        assert df.empty
        assert list(df.columns) == layout_columns(CAMPAIGNS)


class TestWireRecords:
    def test_camel_case_names_and_nulls(self):
        df = rows_to_frame(MONTHLY, [["Sep", "12800", "14000", "85"]])
        records = to_wire_records(MONTHLY, df)
        assert records == [
            {"month": "Sep", "income": 12800, "target": 14000, "hours": 85, "hourTarget": None, "operational": None}
        ]

    def test_campaign_profile_visits(self):
        df = rows_to_frame(CAMPAIGNS, [["A", "1", "2", "", "3"]])
        (rec,) = to_wire_records(CAMPAIGNS, df)
        assert rec["profileVisits"] == 3
        assert rec["cpl"] is None

    def test_empty(self):
        assert to_wire_records(SERVICES, None) == []
