"""
24절기 / 입춘 보정 테스트
"""
from datetime import datetime
import threading

import pytest

from saju_core.services.errors import InvalidInputError
from saju_core.services.solar_terms import (
    SOLAR_TERM_NAMES,
    get_lichun_adjusted_year,
    solar_terms_calculator as calc,
)


class TestSolarTermsForYear:

    def test_24_terms_in_order(self):
        terms = calc.calculate_solar_terms_for_year(2024)
        assert [t.name for t in terms] == SOLAR_TERM_NAMES
        instants = [t.instant for t in terms]
        assert instants == sorted(instants)
        assert [t.month_index for t in terms[:4]] == [0, 0, 1, 1]

    def test_base_year_instants(self):
        terms = calc.calculate_solar_terms_for_year(2024)
        assert terms[0].instant == datetime(2024, 2, 4, 17, 27)
        assert terms[21].instant == datetime(2024, 12, 21, 18, 21)
        # 소한/대한은 다음 해 1월
        assert terms[22].instant.year == 2025
        assert terms[22].instant.date() == datetime(2025, 1, 5).date()

    @pytest.mark.parametrize("case", [
        {"year": 2000, "date": (2000, 2, 4)},
        {"year": 2025, "date": (2025, 2, 3)},
        {"year": 1954, "date": (1954, 2, 4)},
    ])
    def test_lichun_dates(self, case):
        assert calc.get_lichun_date(case["year"]).date() == datetime(*case["date"]).date()

    def test_entering_terms(self):
        terms = calc.calculate_solar_terms_for_year(2024)
        entering = [t.name for t in terms if t.is_entering]
        assert entering == [
            "입춘", "경칩", "청명", "입하", "망종", "소서",
            "입추", "백로", "한로", "입동", "대설", "소한",
        ]

    def test_out_of_range(self):
        with pytest.raises(InvalidInputError):
            calc.calculate_solar_terms_for_year(1800)
        with pytest.raises(InvalidInputError):
            calc.calculate_solar_terms_for_year(2200)

    def test_to_dict(self):
        data = calc.calculate_solar_terms_for_year(2024)[0].to_dict()
        assert data["name"] == "입춘"
        assert data["hanja"] == "立春"
        assert data["instant"] == "2024-02-04T17:27"
        assert data["is_entering"] is True


class TestSajuYear:

    def test_before_and_after_lichun(self):
        assert calc.get_saju_year(datetime(2025, 2, 3, 12, 0)) == 2024
        assert calc.get_saju_year(datetime(2025, 2, 5, 12, 0)) == 2025
        assert calc.get_saju_year(datetime(2000, 2, 4, 12, 0)) == 1999
        assert calc.get_saju_year(datetime(2000, 2, 5, 12, 0)) == 2000

    def test_lichun_instant_boundary(self):
        lichun = calc.get_lichun_date(2024)
        assert calc.get_saju_year(lichun) == 2024
        assert calc.get_saju_year(lichun.replace(minute=lichun.minute - 1)) == 2023

    def test_helper(self):
        assert get_lichun_adjusted_year(2025, 1, 20) == 2024
        assert get_lichun_adjusted_year(2025, 3, 1) == 2025


class TestSajuMonth:

    @pytest.mark.parametrize("case", [
        {"dt": datetime(2025, 1, 3, 12, 0), "expected": 10},   # 소한 전: 자월
        {"dt": datetime(2025, 1, 10, 12, 0), "expected": 11},  # 소한 후: 축월
        {"dt": datetime(2000, 2, 4, 12, 0), "expected": 11},   # 입춘 전
        {"dt": datetime(2000, 2, 5, 12, 0), "expected": 0},    # 인월
        {"dt": datetime(2000, 3, 5, 12, 0), "expected": 0},    # 경칩 전
        {"dt": datetime(2000, 3, 6, 12, 0), "expected": 1},    # 묘월
        {"dt": datetime(2000, 4, 5, 12, 0), "expected": 2},    # 진월
        {"dt": datetime(1988, 6, 3, 8, 32), "expected": 3},    # 사월
        {"dt": datetime(2024, 12, 31, 12, 0), "expected": 10},
    ])
    def test_month_index(self, case):
        assert calc.get_saju_month(case["dt"]) == case["expected"]


class TestCurrentSolarTerm:

    def test_mid_february(self):
        current = calc.get_current_solar_term(datetime(2024, 3, 1, 12, 0))
        assert current.current.name == "우수"
        assert current.next.name == "경칩"
        assert current.days_since_start == 10
        assert current.days_until_next == 3

    def test_wraps_previous_year(self):
        current = calc.get_current_solar_term(datetime(2024, 1, 10, 12, 0))
        assert current.current.name == "소한"
        assert current.next.name == "대한"

    def test_to_dict(self):
        data = calc.get_current_solar_term(datetime(2024, 3, 1, 12, 0)).to_dict()
        assert data["current"]["name"] == "우수"
        assert data["days_until_next"] == 3


class TestTermLookup:

    def test_between(self):
        terms = calc.get_solar_terms_between(datetime(2024, 2, 1), datetime(2024, 3, 31))
        assert [t.name for t in terms] == ["입춘", "우수", "경칩", "춘분"]

    def test_between_inverted(self):
        with pytest.raises(InvalidInputError):
            calc.get_solar_terms_between(datetime(2024, 3, 1), datetime(2024, 2, 1))

    def test_by_name(self):
        assert calc.get_solar_term_by_name(2024, "경칩").index == 2
        assert calc.get_solar_term_by_name(2024, "驚蟄").index == 2
        assert calc.get_solar_term_by_name(2024, "없음") is None


class TestConcurrency:

    def test_parallel_years(self):
        years = list(range(1900, 2101))
        expected = {y: calc.get_lichun_date(y) for y in years}
        errors = []

        def worker(offset):
            try:
                for i in range(len(years) * 5):
                    y = years[(offset * 13 + i) % len(years)]
                    assert calc.get_lichun_date(y) == expected[y]
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert errors == []
