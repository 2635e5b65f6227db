"""
대운 / 세운 테스트
"""
from datetime import date

import pytest

from saju_core.services.calc_module import BirthMoment, SajuCalculator
from saju_core.services.daeun import (
    DaeunEngine,
    Gender,
    SaeunEngine,
    calc_daeun_pillars,
    daeun_direction,
    saeun_engine,
    start_age_from_distance,
)
from saju_core.services.errors import InvalidInputError, MalformedUpstreamDataError
from saju_core.services.ganji import HeavenlyStem, parse_ganji

FORWARD_FROM_GIMYO = ["경진", "신사", "임오", "계미", "갑신", "을유", "병술", "정해", "무자", "기축"]
BACKWARD_FROM_GIMYO = ["무인", "정축", "병자", "을해", "갑술", "계유", "임신", "신미", "경오", "기사"]


def saju_result(year, month, day, hour=12, minute=0):
    return SajuCalculator().calculate(BirthMoment(year, month, day, hour, minute))


class TestDaeunPillars:

    def test_forward(self):
        assert [p.ganji for p in calc_daeun_pillars("기묘", "forward")] == FORWARD_FROM_GIMYO

    def test_backward(self):
        assert [p.ganji for p in calc_daeun_pillars(parse_ganji("기묘"), "backward")] == BACKWARD_FROM_GIMYO

    def test_wraps_cycle(self):
        assert [p.ganji for p in calc_daeun_pillars("계해", "forward", count=2)] == ["갑자", "을축"]
        assert [p.ganji for p in calc_daeun_pillars("갑자", "backward", count=1)] == ["계해"]

    def test_hanja_month_pillar(self):
        assert calc_daeun_pillars("己卯", "forward", count=1)[0].ganji == "경진"

    @pytest.mark.parametrize("text", ["", "없음", "갑축"])
    def test_unresolvable(self, text):
        with pytest.raises(MalformedUpstreamDataError):
            calc_daeun_pillars(text, "forward")


class TestDirectionAndAge:

    @pytest.mark.parametrize("case", [
        {"gender": Gender.MALE, "stem": HeavenlyStem.GYEONG, "expected": "forward"},
        {"gender": Gender.FEMALE, "stem": HeavenlyStem.GYEONG, "expected": "backward"},
        {"gender": Gender.MALE, "stem": HeavenlyStem.GI, "expected": "backward"},
        {"gender": Gender.FEMALE, "stem": HeavenlyStem.GI, "expected": "forward"},
    ])
    def test_direction(self, case):
        assert daeun_direction(case["gender"], case["stem"]) == case["expected"]

    @pytest.mark.parametrize("case", [
        {"days": 1, "age": 3},
        {"days": 9, "age": 3},
        {"days": 10, "age": 4},
        {"days": 14, "age": 5},
        {"days": 16, "age": 6},
        {"days": 24, "age": 8},
        {"days": 29, "age": 8},
    ])
    def test_start_age(self, case):
        assert start_age_from_distance(case["days"]) == case["age"]


class TestDaeunHeuristic:
    """만세력 없음: 순행 5 / 역행 4"""

    def test_male_forward(self):
        daeun = DaeunEngine().calculate(saju_result(2000, 3, 7, 12, 34), Gender.MALE)
        assert daeun.direction == "forward"
        assert daeun.start_age == 5
        assert daeun.start_age_method == "heuristic"
        assert daeun.distance_days is None
        assert [p.pillar.ganji for p in daeun.periods] == FORWARD_FROM_GIMYO

    def test_female_backward(self):
        daeun = DaeunEngine().calculate(saju_result(2000, 3, 7, 12, 34), Gender.FEMALE)
        assert daeun.direction == "backward"
        assert daeun.start_age == 4
        assert [p.pillar.ganji for p in daeun.periods] == BACKWARD_FROM_GIMYO

    def test_periods_contiguous(self):
        daeun = DaeunEngine().calculate(saju_result(1988, 6, 3, 8, 32), Gender.FEMALE)
        assert len(daeun.periods) == 10
        for i, period in enumerate(daeun.periods):
            assert period.start_age == daeun.start_age + 10 * i
            assert period.end_age == period.start_age + 9
            assert period.start_year == 1988 + period.start_age
            assert period.end_year == period.start_year + 9
        for prev, cur in zip(daeun.periods, daeun.periods[1:]):
            assert cur.start_age == prev.end_age + 1

    def test_current_and_until(self):
        daeun = DaeunEngine().calculate(saju_result(2000, 3, 7, 12, 34), Gender.MALE)
        current = daeun.current(26)
        assert current.period.start_age == 25
        assert current.period.pillar.ganji == "임오"
        assert current.years_in_period == 2
        assert daeun.current(2) is None
        assert len(daeun.until(30)) == 3
        assert len(daeun.periods) == 10

    def test_board_and_dict(self):
        daeun = DaeunEngine().calculate(saju_result(2000, 3, 7, 12, 34), Gender.MALE)
        board = daeun.format_board()
        assert board.startswith("대운 (순행, 대운수 5)")
        assert "경진(庚辰)" in board
        data = daeun.to_dict()
        assert data["month_pillar"] == "기묘"
        assert len(data["periods"]) == 10
        assert data["periods"][0]["ganji"] == "경진"


class TestDaeunAlmanac:
    """만세력 월주 변화일 기준 대운수"""

    @pytest.mark.parametrize("case", [
        {"birth": (2000, 3, 7), "gender": Gender.MALE, "distance": 29, "age": 8},
        {"birth": (2000, 3, 7), "gender": Gender.FEMALE, "distance": 1, "age": 3},
        {"birth": (2000, 3, 20), "gender": Gender.MALE, "distance": 16, "age": 6},
        {"birth": (2000, 3, 20), "gender": Gender.FEMALE, "distance": 14, "age": 5},
    ])
    def test_start_age(self, almanac_repo, case):
        daeun = DaeunEngine(almanac_repo).calculate(saju_result(*case["birth"]), case["gender"])
        assert daeun.start_age_method == "almanac"
        assert daeun.distance_days == case["distance"]
        assert daeun.start_age == case["age"]

    def test_distance_directly(self, almanac_repo):
        engine = DaeunEngine(almanac_repo)
        assert engine.distance_to_solar_term(date(2000, 3, 7), forward=True) == 29
        assert engine.distance_to_solar_term(date(2000, 3, 6), forward=False) == 1

    def test_falls_back_without_rows(self, empty_repo):
        daeun = DaeunEngine(empty_repo).calculate(saju_result(2000, 3, 7), Gender.MALE)
        assert daeun.start_age_method == "heuristic"
        assert daeun.start_age == 5


class TestSaeun:

    @pytest.mark.parametrize("case", [
        {"year": 1900, "expected": "경자"},
        {"year": 2024, "expected": "갑진"},
        {"year": 2026, "expected": "병오"},
    ])
    def test_year(self, case):
        assert saeun_engine.calculate_year(case["year"]).ganji == case["expected"]

    def test_range_with_ages(self):
        entries = SaeunEngine().calculate_range(2024, 2026, birth_year=2000)
        assert [e.pillar.ganji for e in entries] == ["갑진", "을사", "병오"]
        assert [e.age for e in entries] == [25, 26, 27]

    def test_range_without_birth_year(self):
        entries = saeun_engine.calculate_range(2024, 2024)
        assert entries[0].age is None
        assert entries[0].to_dict()["hanja"] == "甲辰"

    def test_current(self):
        entry = saeun_engine.current_saeun(2000, 2026)
        assert entry.pillar.ganji == "병오"
        assert entry.age == 27

    @pytest.mark.parametrize("args", [(1899, 1900), (2000, 2101), (2026, 2024)])
    def test_invalid_range(self, args):
        with pytest.raises(InvalidInputError):
            saeun_engine.calculate_range(*args)

    def test_format_list(self):
        text = SaeunEngine.format_list(saeun_engine.calculate_range(2024, 2025, birth_year=2000))
        assert text.splitlines()[0] == "세운 (2024-2025년)"
        assert "2024년 (25세): 갑진(甲辰)" in text
        assert SaeunEngine.format_list([]) == "세운 없음"
