"""
공통 픽스처
- formula_entry: 공식 계산(정오 기준)으로 만든 만세력 1일치
- almanac_repo: 2000-02-01 ~ 2000-04-30 만세력이 적재된 SQLite 저장소
"""
from datetime import date, timedelta

import pytest

from saju_core.services.calc_module import BirthMoment, SajuCalculator
from saju_core.services.calendar_source import AlmanacEntry
from saju_core.services.database import SqliteCalendarRepository

ALMANAC_START = date(2000, 2, 1)
ALMANAC_END = date(2000, 4, 30)

# 테스트용 음력: 양력 - 30일 (실제 음력 아님)
LUNAR_SHIFT_DAYS = 30


def formula_entry(d: date) -> AlmanacEntry:
    result = SajuCalculator().calculate(BirthMoment(d.year, d.month, d.day, 12))
    p = result.pillars
    lunar = d - timedelta(days=LUNAR_SHIFT_DAYS)
    return AlmanacEntry(
        solar_year=d.year,
        solar_month=d.month,
        solar_day=d.day,
        lunar_year=lunar.year,
        lunar_month=lunar.month,
        lunar_day=lunar.day,
        is_leap_month=False,
        year_ganji=p.year.ganji,
        month_ganji=p.month.ganji,
        day_ganji=p.day.ganji,
        year_ganji_hanja=p.year.hanja,
        month_ganji_hanja=p.month.hanja,
        day_ganji_hanja=p.day.hanja,
        weekday="화",
        weekday_hanja="火",
        constellation="각",
        zodiac=p.year.branch.animal,
    )


def date_range(start: date, end: date):
    d = start
    while d <= end:
        yield d
        d += timedelta(days=1)


@pytest.fixture
def almanac_entries():
    return [formula_entry(d) for d in date_range(ALMANAC_START, ALMANAC_END)]


@pytest.fixture
def almanac_repo(tmp_path, almanac_entries):
    repo = SqliteCalendarRepository(str(tmp_path / "calendar.db"))
    repo.insert_entries(almanac_entries)
    return repo


@pytest.fixture
def empty_repo(tmp_path):
    return SqliteCalendarRepository(str(tmp_path / "empty.db"))
