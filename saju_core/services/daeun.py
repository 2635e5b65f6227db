"""
대운(大運) / 세운(歲運) 계산
- 🔥 대운: 월주 기준 60갑자 순행/역행, 10개 구간
- 양남음녀 순행, 음남양녀 역행
- 대운수: 만세력 기준 절입일까지 일수 / 3 (3~8 제한), 만세력 없으면 근사값 (순행 5 / 역행 4)
- 세운: 1900년 = 경자년 기준 (양력 연도 단위)
"""
import logging
import math
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from saju_core.services.calc_module import SajuResult
from saju_core.services.calendar_source import AlmanacEntry, CalendarDataSource
from saju_core.services.errors import InvalidInputError, MalformedUpstreamDataError
from saju_core.services.ganji import (
    GAPJA_CYCLE,
    SAEUN_CYCLE,
    SIXTY_GANJI,
    HeavenlyStem,
    Pillar,
    normalize_ganji,
    parse_ganji,
)
from saju_core.services.solar_terms import MAX_YEAR, MIN_YEAR

logger = logging.getLogger(__name__)

DAEUN_COUNT = 10
MIN_START_AGE = 3
MAX_START_AGE = 8
HEURISTIC_START_AGE = {"forward": 5, "backward": 4}


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# 🔥 60갑자 + 대운 리스트 생성
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def calc_daeun_pillars(month_pillar: Union[str, Pillar], direction: str, count: int = DAEUN_COUNT) -> List[Pillar]:
    """
    🔥 월주 기준 대운 간지 리스트 생성
    - forward(순행): 다음 간지부터
    - backward(역행): 이전 간지부터
    - 60갑자에서 월주를 찾지 못하면 MalformedUpstreamDataError
    """
    if isinstance(month_pillar, Pillar):
        idx = month_pillar.index
    else:
        mg = normalize_ganji(month_pillar)
        if mg in SIXTY_GANJI:
            idx = SIXTY_GANJI.index(mg)
        else:
            idx = parse_ganji(mg).index

    step = 1 if direction == "forward" else -1
    return [GAPJA_CYCLE.pillar_from_offset(idx + step * (i + 1)) for i in range(count)]


def daeun_direction(gender: Gender, year_stem: HeavenlyStem) -> str:
    """양남음녀 순행, 음남양녀 역행"""
    is_male = Gender(gender) == Gender.MALE
    return "forward" if is_male == year_stem.is_yang else "backward"


def start_age_from_distance(distance_days: int) -> int:
    """대운수 = ceil(절입까지 일수 / 3), 3~8 제한"""
    age = math.ceil(distance_days / 3)
    return max(MIN_START_AGE, min(MAX_START_AGE, age))


@dataclass(frozen=True)
class DaeunPeriod:
    """대운 1구간 (10년)"""
    start_age: int
    end_age: int
    pillar: Pillar
    start_year: int
    end_year: int

    def contains_age(self, age: int) -> bool:
        return self.start_age <= age <= self.end_age

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start_age": self.start_age,
            "end_age": self.end_age,
            "ganji": self.pillar.ganji,
            "hanja": self.pillar.hanja,
            "pillar": self.pillar.to_dict(),
            "start_year": self.start_year,
            "end_year": self.end_year,
        }


@dataclass(frozen=True)
class CurrentDaeun:
    age: int
    period: DaeunPeriod
    years_in_period: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "age": self.age,
            "period": self.period.to_dict(),
            "years_in_period": self.years_in_period,
        }


@dataclass(frozen=True)
class DaeunList:
    """대운 10구간"""
    direction: str                      # "forward" | "backward"
    start_age: int
    start_age_method: str               # "almanac" | "heuristic"
    distance_days: Optional[int]
    month_pillar: Pillar
    birth_year: int
    periods: Tuple[DaeunPeriod, ...]

    def current(self, age: int) -> Optional[CurrentDaeun]:
        for period in self.periods:
            if period.contains_age(age):
                return CurrentDaeun(age=age, period=period, years_in_period=age - period.start_age + 1)
        return None

    def until(self, max_age: int) -> List[DaeunPeriod]:
        """max_age 이전에 시작하는 구간만"""
        return [p for p in self.periods if p.start_age <= max_age]

    def format_board(self) -> str:
        """대운표 텍스트"""
        arrow = "순행" if self.direction == "forward" else "역행"
        lines = [f"대운 ({arrow}, 대운수 {self.start_age})"]
        for p in self.periods:
            lines.append(f"{p.start_age:>3}~{p.end_age:<3}세 {p.pillar.label} {p.start_year}~{p.end_year}")
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "direction": self.direction,
            "start_age": self.start_age,
            "start_age_method": self.start_age_method,
            "distance_days": self.distance_days,
            "month_pillar": self.month_pillar.ganji,
            "birth_year": self.birth_year,
            "periods": [p.to_dict() for p in self.periods],
        }


class DaeunEngine:
    """
    대운 계산 엔진
    - calendar 가 있으면 만세력 월주 변화일로 절입까지 일수 계산
    - 없거나 변화일을 못 찾으면 근사값 (순행 5 / 역행 4)
    """

    def __init__(self, calendar: Optional[CalendarDataSource] = None):
        self.calendar = calendar

    def calculate(self, result: SajuResult, gender: Gender) -> DaeunList:
        pillars = result.pillars
        direction = daeun_direction(gender, pillars.year.stem)
        forward = direction == "forward"

        distance = None
        if self.calendar is not None:
            distance = self.distance_to_solar_term(result.solar_date, forward)

        if distance is None:
            start_age = HEURISTIC_START_AGE[direction]
            method = "heuristic"
        else:
            start_age = start_age_from_distance(distance)
            method = "almanac"

        birth_year = result.solar_date.year
        periods = []
        for i, pillar in enumerate(calc_daeun_pillars(pillars.month, direction)):
            age_lo = start_age + 10 * i
            age_hi = age_lo + 9
            periods.append(DaeunPeriod(
                start_age=age_lo,
                end_age=age_hi,
                pillar=pillar,
                start_year=birth_year + age_lo,
                end_year=birth_year + age_lo + 9,
            ))

        logger.info(
            f"[Daeun] month_pillar={pillars.month} | direction={direction} | "
            f"start_age={start_age}({method}) | list[:3]={[p.pillar.ganji for p in periods[:3]]}"
        )

        return DaeunList(
            direction=direction,
            start_age=start_age,
            start_age_method=method,
            distance_days=distance,
            month_pillar=pillars.month,
            birth_year=birth_year,
            periods=tuple(periods),
        )

    def distance_to_solar_term(self, birth_date: date, forward: bool) -> Optional[int]:
        """
        만세력 월주 변화일(절입일)까지 일수
        - 전월/당월/익월 데이터에서 월주가 바뀌는 날을 찾는다
        - 순행: 출생일 이후 첫 변화일까지
        - 역행: 출생일 이전(당일 포함) 마지막 변화일부터
        - 최소 1일, 변화일을 못 찾으면 None
        """
        rows = self._rows_around(birth_date)
        changes = []
        for prev, cur in zip(rows, rows[1:]):
            if (cur.solar_date - prev.solar_date).days == 1 and \
                    _month_key(cur) != _month_key(prev):
                changes.append(cur.solar_date)

        if forward:
            after = [d for d in changes if d > birth_date]
            if not after:
                return None
            distance = (min(after) - birth_date).days
        else:
            before = [d for d in changes if d <= birth_date]
            if not before:
                return None
            distance = (birth_date - max(before)).days

        logger.info(f"[Daeun] 절입 거리: {birth_date} forward={forward} → {distance}일")
        return max(1, distance)

    def _rows_around(self, birth_date: date) -> List[AlmanacEntry]:
        year, month = birth_date.year, birth_date.month
        months = [
            (year - 1, 12) if month == 1 else (year, month - 1),
            (year, month),
            (year + 1, 1) if month == 12 else (year, month + 1),
        ]
        rows = []
        for y, m in months:
            rows.extend(self.calendar.find_by_year_month(y, m))
        return sorted(rows, key=lambda e: e.solar_date)


def _month_key(entry: AlmanacEntry) -> str:
    try:
        return entry.month_pillar().ganji
    except MalformedUpstreamDataError:
        logger.warning(f"[Daeun] 월주 해석 불가: {entry.solar_date} {entry.month_ganji!r}")
        raise


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# 세운
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class SaeunEntry:
    year: int
    pillar: Pillar
    age: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "year": self.year,
            "ganji": self.pillar.ganji,
            "hanja": self.pillar.hanja,
            "pillar": self.pillar.to_dict(),
            "age": self.age,
        }


class SaeunEngine:
    """세운 = 1900년(경자) 기준 offset, 절기와 무관하게 양력 연도 단위"""

    def calculate_year(self, year: int) -> Pillar:
        _check_year(year)
        return SAEUN_CYCLE.pillar_at(year)

    def calculate_range(self, start_year: int, end_year: int, birth_year: Optional[int] = None) -> List[SaeunEntry]:
        _check_year(start_year)
        _check_year(end_year)
        if end_year < start_year:
            raise InvalidInputError(f"연도 범위 오류: {start_year} > {end_year}")
        if birth_year is not None:
            _check_year(birth_year)

        entries = []
        for year in range(start_year, end_year + 1):
            age = year - birth_year + 1 if birth_year is not None else None
            entries.append(SaeunEntry(year=year, pillar=SAEUN_CYCLE.pillar_at(year), age=age))
        return entries

    def current_saeun(self, birth_year: int, year: int) -> SaeunEntry:
        _check_year(birth_year)
        return SaeunEntry(year=year, pillar=self.calculate_year(year), age=year - birth_year + 1)

    @staticmethod
    def format_list(entries: List[SaeunEntry]) -> str:
        if not entries:
            return "세운 없음"
        lines = [f"세운 ({entries[0].year}-{entries[-1].year}년)"]
        for e in entries:
            age = f" ({e.age}세)" if e.age is not None else ""
            lines.append(f"{e.year}년{age}: {e.pillar.label}")
        return "\n".join(lines)


def _check_year(year: int):
    if isinstance(year, bool) or not isinstance(year, int) or not MIN_YEAR <= year <= MAX_YEAR:
        raise InvalidInputError(f"연도 범위 오류: {year!r}", detail=f"{MIN_YEAR}~{MAX_YEAR}")


# 싱글톤
saeun_engine = SaeunEngine()
