"""
Tests for occurrence formatting

Tests cover:
- Collector and determiner names
- Collector numbers
- Collection and identification years
- Institution and collection codes
- The format_occ wrapper
"""

import pandas as pd
import pytest

from dwc.occurrence import (
    col_number,
    fix_name,
    format_occ,
    get_code,
    get_year,
    last_name,
    miss_name,
    prep_name,
)
from qc.errors import InvalidInputError


class TestNames:
    """Tests for people name helpers."""

    def test_fix_name_removes_et_al(self):
        assert fix_name("Silva, J.; Souza, M. et al.") == "Silva, J.; Souza, M."

    def test_fix_name_separators(self):
        assert fix_name("J.A.Silva & M. Souza") == "J.A. Silva; M. Souza"
        assert fix_name("Silva, J. | Souza, M.") == "Silva, J.; Souza, M."

    def test_fix_name_brackets(self):
        assert fix_name("[Silva, J.]") == "Silva, J."

    def test_fix_name_keeps_names_containing_et(self):
        assert fix_name("Betalia, R.") == "Betalia, R."

    def test_fix_name_unknown(self):
        assert fix_name(None) is None
        assert fix_name("  ") is None

    def test_prep_name_first(self):
        assert prep_name("J.A. Silva; M. Souza") == "Silva, J.A."

    def test_prep_name_aux(self):
        assert prep_name("J.A. Silva; M. Souza", output="aux") == "Souza, M."
        assert prep_name("J.A. Silva", output="aux") is None

    def test_prep_name_all(self):
        assert prep_name("J.A. Silva; M. Souza", output="all") == "Silva, J.A.; Souza, M."

    def test_prep_name_comma_notation(self):
        assert prep_name("Silva, José Augusto") == "Silva, J.A."

    def test_prep_name_particles_and_suffix(self):
        assert prep_name("João da Silva Filho") == "Silva Filho, J."

    def test_miss_name(self):
        assert miss_name(None) == "s.n."
        assert miss_name("Anônimo") == "s.n."
        assert miss_name("S.n.", no_name="?") == "?"
        assert miss_name("Silva, J.") == "Silva, J."

    def test_last_name(self):
        assert last_name("Silva, J.") == "Silva"
        assert last_name("Silva") == "Silva"
        assert last_name("s.n.") == "s.n."
        assert last_name(None) == "s.n."


class TestNumbersAndYears:
    """Tests for collector numbers and years."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("1234", "1234"),
            ("n° 1234", "1234"),
            ("#56", "56"),
            ("123.0", "123"),
            ("123 a", "123A"),
            ("s/n", "s.n."),
            ("s.n.", "s.n."),
            ("0", "s.n."),
            ("abc", "s.n."),
            (None, "s.n."),
        ],
    )
    def test_col_number(self, value, expected):
        assert col_number(value) == expected

    def test_col_number_custom_placeholder(self):
        assert col_number(None, no_numb="SN") == "SN"

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("2001-05-03", "2001"),
            ("12/5/1987", "1987"),
            ("1998", "1998"),
            ("3000", "n.d."),
            ("2099-01-01", "n.d."),
            ("sem data", "n.d."),
            (None, "n.d."),
        ],
    )
    def test_get_year(self, value, expected):
        assert get_year(value) == expected


class TestCodes:
    """Tests for institution and collection codes."""

    def test_get_code(self):
        df = pd.DataFrame({"institutionCode": ["jbrj", "uec"], "collectionCode": ["rb", " hucs "]})
        result = get_code(df)

        assert result["institutionCode.new"].tolist() == ["RB", "UEC"]
        assert result["collectionCode.new"].tolist() == ["RB", "HUCS"]

    def test_get_code_missing_columns(self):
        df = pd.DataFrame({"family": ["Fabaceae"]})
        assert list(get_code(df).columns) == ["family"]


class TestFormatOcc:
    """Tests for the format_occ wrapper."""

    @pytest.fixture
    def records(self):
        return pd.DataFrame(
            {
                "recordedBy": ["Silva, J. & M. Souza", None],
                "recordNumber": ["n° 12", "s/n"],
                "year": [None, "1975"],
                "eventDate": ["1998-03-02", None],
                "identifiedBy": ["s.n.", "Lima, H.C."],
                "dateIdentified": [None, "2010-01-01"],
                "yearIdentified": ["2005", None],
                "institutionCode": ["jbrj", "NY"],
                "collectionCode": ["rb", "ny"],
            }
        )

    def test_columns_added(self, records):
        result = format_occ(records)

        assert result["recordedBy.new"].tolist() == ["Silva, J.", "s.n."]
        assert result["recordedBy.aux"].tolist()[0] == "Souza, M."
        assert result["recordNumber.new"].tolist() == ["12", "s.n."]
        assert result["identifiedBy.new"].tolist() == ["s.n.", "Lima, H.C."]
        assert result["last.name"].tolist() == ["Silva", "s.n."]
        assert result["institutionCode.new"].tolist() == ["RB", "NY"]
        assert result["collectionCode.new"].tolist() == ["RB", "NY"]

    def test_years_backfilled(self, records):
        result = format_occ(records)

        assert result["year"].tolist()[0] == "1998-03-02"
        assert result["year.new"].tolist() == ["1998", "1975"]
        assert result["yearIdentified.new"].tolist() == ["2005", "2010"]

    def test_year_from_verbatim_event_date(self):
        """The verbatim date is used when both year and eventDate are missing."""
        df = pd.DataFrame(
            {"year": [None], "eventDate": [None], "verbatimEventDate": ["02/03/1987"]}
        )
        result = format_occ(df)

        assert result["year.new"].tolist() == ["1987"]

    def test_event_date_preferred_over_verbatim(self):
        df = pd.DataFrame(
            {
                "year": [None, "1975"],
                "eventDate": ["1998-03-02", None],
                "verbatimEventDate": ["02/03/1987", "1960"],
            }
        )
        result = format_occ(df)

        assert result["year.new"].tolist() == ["1998", "1975"]

    def test_placeholders(self, records):
        result = format_occ(records, no_numb="SN", no_year="ND", no_name="anon.")

        assert result["recordNumber.new"].tolist()[1] == "SN"
        assert result["recordedBy.new"].tolist()[1] == "anon."

    def test_input_not_modified(self, records):
        before = records.copy()
        format_occ(records)
        pd.testing.assert_frame_equal(records, before)

    def test_absent_columns_skipped(self):
        result = format_occ(pd.DataFrame({"recordNumber": ["12"]}))

        assert list(result.columns) == ["recordNumber", "recordNumber.new"]

    def test_invalid_input(self):
        with pytest.raises(InvalidInputError):
            format_occ(["not", "a", "frame"])
        with pytest.raises(InvalidInputError):
            format_occ(pd.DataFrame({"recordNumber": []}))
