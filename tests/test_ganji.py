"""
60갑자 / JDN / 간지 공식 테스트
"""
from datetime import date, timedelta

import pytest

from saju_core.services.errors import (
    InvalidInputError,
    InvalidPillarCombination,
    MalformedUpstreamDataError,
)
from saju_core.services.ganji import (
    DAY_CYCLE,
    GAPJA_CYCLE,
    SAEUN_CYCLE,
    SIXTY_GANJI,
    YEAR_CYCLE,
    EarthlyBranch,
    Element,
    HeavenlyStem,
    Pillar,
    apply_night_zi,
    ganji_calc,
    hour_options,
    jdn,
    normalize_ganji,
    parse_ganji,
)


class TestSexagenaryCycle:
    """60갑자 순환"""

    def test_round_trip_all_offsets(self):
        for n in range(60):
            pillar = GAPJA_CYCLE.pillar_from_offset(n)
            assert GAPJA_CYCLE.offset_from_pillar(pillar) == n
            assert pillar.index == n

    def test_parity_holds(self):
        for n in range(60):
            pillar = Pillar.from_index(n)
            assert pillar.stem.value % 2 == pillar.branch.value % 2

    def test_negative_offset_wraps(self):
        assert GAPJA_CYCLE.pillar_from_offset(-1).ganji == "계해"
        assert GAPJA_CYCLE.pillar_from_offset(60).ganji == "갑자"

    def test_sixty_ganji_order(self):
        assert len(SIXTY_GANJI) == 60
        assert len(set(SIXTY_GANJI)) == 60
        assert SIXTY_GANJI[0] == "갑자"
        assert SIXTY_GANJI[1] == "을축"
        assert SIXTY_GANJI[59] == "계해"

    def test_mismatched_parity_rejected(self):
        with pytest.raises(InvalidPillarCombination):
            Pillar(HeavenlyStem.GAP, EarthlyBranch.CHUK)
        with pytest.raises(InvalidPillarCombination):
            GAPJA_CYCLE.offset_from_indices(0, 1)

    def test_anchors(self):
        assert YEAR_CYCLE.pillar_at(1984).ganji == "갑자"
        assert SAEUN_CYCLE.pillar_at(1900).ganji == "경자"
        assert DAY_CYCLE.pillar_at(jdn(1999, 12, 14)).ganji == "경자"


class TestStemBranch:

    def test_stem_attributes(self):
        gap = HeavenlyStem.GAP
        assert gap.korean == "갑"
        assert gap.hanja == "甲"
        assert gap.element == Element.WOOD
        assert gap.is_yang
        assert not HeavenlyStem.EUL.is_yang

    def test_branch_attributes(self):
        ja = EarthlyBranch.JA
        assert ja.korean == "자"
        assert ja.hanja == "子"
        assert ja.element == Element.WATER
        assert ja.animal == "쥐"
        assert ja.triad == "신자진"
        assert ja.triad_anchor == EarthlyBranch.JA
        assert EarthlyBranch.IN.triad_anchor == EarthlyBranch.O

    def test_from_char(self):
        assert HeavenlyStem.from_char("庚") == HeavenlyStem.GYEONG
        assert EarthlyBranch.from_char("오") == EarthlyBranch.O
        with pytest.raises(InvalidInputError):
            HeavenlyStem.from_char("x")

    def test_pillar_labels(self):
        pillar = Pillar(HeavenlyStem.GAP, EarthlyBranch.JA)
        assert pillar.ganji == "갑자"
        assert pillar.hanja == "甲子"
        assert pillar.label == "갑자(甲子)"
        assert str(pillar) == "갑자"
        assert pillar.to_dict()["gan_element"] == "목"


class TestJdn:

    def test_known_values(self):
        assert jdn(2000, 1, 1) == 2451545
        assert jdn(1999, 12, 14) == 2451527
        assert jdn(2000, 3, 7) == 2451611

    def test_strictly_increasing_by_one(self):
        d = date(1900, 1, 1)
        prev = jdn(d.year, d.month, d.day)
        while d < date(2100, 12, 31):
            d += timedelta(days=1)
            cur = jdn(d.year, d.month, d.day)
            assert cur == prev + 1
            prev = cur


class TestGanjiCalculator:

    @pytest.mark.parametrize("case", [
        {"date": (1999, 12, 14), "expected": "경자"},
        {"date": (1982, 4, 16), "expected": "기사"},
        {"date": (2000, 1, 1), "expected": "무오"},
        {"date": (2000, 3, 7), "expected": "갑자"},
        {"date": (1978, 5, 16), "expected": "무인"},
    ])
    def test_day_pillar_fixed_points(self, case):
        assert ganji_calc.calc_day_ganji(*case["date"]).ganji == case["expected"]

    def test_day_pillar_period_60(self):
        d = date(1950, 6, 1)
        for _ in range(20):
            later = d + timedelta(days=60)
            assert ganji_calc.calc_day_ganji(d.year, d.month, d.day) == \
                ganji_calc.calc_day_ganji(later.year, later.month, later.day)
            d += timedelta(days=37)

    def test_year_pillar(self):
        assert ganji_calc.calc_year_ganji(1984).ganji == "갑자"
        assert ganji_calc.calc_year_ganji(2024).ganji == "갑진"
        assert ganji_calc.calc_year_ganji(2025).ganji == "을사"
        assert ganji_calc.calc_year_ganji(1900).ganji == "경자"

    @pytest.mark.parametrize("case", [
        {"year_stem": HeavenlyStem.GAP, "month": 0, "expected": "병인"},
        {"year_stem": HeavenlyStem.EUL, "month": 0, "expected": "무인"},
        {"year_stem": HeavenlyStem.GYEONG, "month": 1, "expected": "기묘"},
        {"year_stem": HeavenlyStem.IM, "month": 0, "expected": "임인"},
        {"year_stem": HeavenlyStem.GYE, "month": 11, "expected": "을축"},
    ])
    def test_month_pillar_five_tigers(self, case):
        assert ganji_calc.calc_month_ganji(case["year_stem"], case["month"]).ganji == case["expected"]

    def test_month_index_out_of_range(self):
        with pytest.raises(InvalidInputError):
            ganji_calc.calc_month_ganji(HeavenlyStem.GAP, 12)

    @pytest.mark.parametrize("case", [
        {"day_stem": HeavenlyStem.GAP, "hour": 0, "expected": "갑자"},
        {"day_stem": HeavenlyStem.GAP, "hour": 23, "expected": "갑자"},
        {"day_stem": HeavenlyStem.GAP, "hour": 12, "expected": "경오"},
        {"day_stem": HeavenlyStem.EUL, "hour": 1, "expected": "정축"},
        {"day_stem": HeavenlyStem.MU, "hour": 11, "expected": "무오"},
        {"day_stem": HeavenlyStem.GYE, "hour": 22, "expected": "계해"},
    ])
    def test_hour_pillar_five_rats(self, case):
        assert ganji_calc.calc_hour_ganji(case["day_stem"], case["hour"]).ganji == case["expected"]

    def test_hour_bins(self):
        assert ganji_calc.get_hour_ji_index(23) == 0
        assert ganji_calc.get_hour_ji_index(0) == 0
        assert ganji_calc.get_hour_ji_index(1) == 1
        assert ganji_calc.get_hour_ji_index(2) == 1
        assert ganji_calc.get_hour_ji_index(22) == 11
        with pytest.raises(InvalidInputError):
            ganji_calc.get_hour_ji_index(24)

    def test_hour_options(self):
        options = hour_options()
        assert len(options) == 12
        assert options[0]["ji"] == "자"
        assert options[0]["range_start"] == "23:00"
        assert options[6]["label"] == "午시 (오시) - 11:00~12:59"


class TestNightZi:

    def test_advances_date(self):
        assert apply_night_zi(2000, 3, 6, 23) == (2000, 3, 7)
        assert apply_night_zi(2000, 3, 6, 22) == (2000, 3, 6)

    def test_month_and_year_rollover(self):
        assert apply_night_zi(1999, 12, 31, 23) == (2000, 1, 1)
        assert apply_night_zi(2000, 2, 29, 23) == (2000, 3, 1)
        assert apply_night_zi(2001, 2, 28, 23) == (2001, 3, 1)


class TestParseGanji:

    @pytest.mark.parametrize("text", ["갑자", "甲子", "갑자(甲子)", "甲子(갑자)", " 갑 자 ", "\u200b갑자\ufeff"])
    def test_accepted_forms(self, text):
        assert parse_ganji(text).ganji == "갑자"

    def test_normalize(self):
        assert normalize_ganji(None) == ""
        assert normalize_ganji("경\xa0진") == "경진"

    @pytest.mark.parametrize("text", ["", None, "abc", "갑축"])
    def test_malformed(self, text):
        with pytest.raises(MalformedUpstreamDataError):
            parse_ganji(text)
