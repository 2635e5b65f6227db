"""
24절기 계산 및 절입 시각 판정
- 월주 계산의 핵심: 어느 절기 구간인지 판단
- 입춘 기준 연주 보정
- 2024년 실측 절입 시각(KST)을 기준으로 회귀년(365.2422일) 보정
"""
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Tuple

from cachetools import LRUCache, cached

from saju_core.services.errors import InvalidInputError

logger = logging.getLogger(__name__)

MIN_YEAR = 1900
MAX_YEAR = 2100

BASE_YEAR = 2024
TROPICAL_YEAR_DAYS = 365.2422

# 24절기 (입춘부터), 짝수 인덱스 = 절(節, 월이 바뀌는 절기)
SOLAR_TERM_NAMES = [
    "입춘", "우수", "경칩", "춘분", "청명", "곡우",
    "입하", "소만", "망종", "하지", "소서", "대서",
    "입추", "처서", "백로", "추분", "한로", "상강",
    "입동", "소설", "대설", "동지", "소한", "대한",
]

SOLAR_TERM_HANJA = [
    "立春", "雨水", "驚蟄", "春分", "淸明", "穀雨",
    "立夏", "小滿", "芒種", "夏至", "小暑", "大暑",
    "立秋", "處暑", "白露", "秋分", "寒露", "霜降",
    "立冬", "小雪", "大雪", "冬至", "小寒", "大寒",
]

# 2024-01-01 00:00 KST 부터 각 절입 시각까지의 일수
# 출처: 한국천문연구원 2024년 절기 시각 (소한/대한은 2025년 1월)
SOLAR_TERM_OFFSETS_2024 = [
    34.7271,   # 입춘 02-04 17:27
    49.5507,   # 우수 02-19 13:13
    64.4743,   # 경칩 03-05 11:23
    79.5042,   # 춘분 03-20 12:06
    94.6681,   # 청명 04-04 16:02
    109.9576,  # 곡우 04-19 22:59
    125.3819,  # 입하 05-05 09:10
    140.9160,  # 소만 05-20 21:59
    156.5486,  # 망종 06-05 13:10
    172.2438,  # 하지 06-21 05:51
    187.9722,  # 소서 07-06 23:20
    203.6972,  # 대서 07-22 16:44
    219.3813,  # 입추 08-07 09:09
    234.9965,  # 처서 08-22 23:55
    250.5076,  # 백로 09-07 12:11
    265.9056,  # 추분 09-22 21:44
    281.1250,  # 한로 10-08 03:00
    296.2604,  # 상강 10-23 06:15
    311.3056,  # 입동 11-07 07:20
    326.2056,  # 소설 11-22 04:56
    341.0118,  # 대설 12-07 00:17
    355.7646,  # 동지 12-21 18:21
    370.4813,  # 소한 2025-01-05 11:33
    385.2076,  # 대한 2025-01-20 04:59
]


@dataclass(frozen=True)
class SolarTermBoundary:
    """절기 경계 정보"""
    name: str           # 절기 이름 (한글)
    hanja: str          # 절기 이름 (한자)
    index: int          # 0=입춘 ... 23=대한
    instant: datetime   # 절입 시각 (KST, naive)
    month_index: int    # 월지 인덱스 (0=인월, 1=묘월, ..., 11=축월)

    @property
    def is_entering(self) -> bool:
        """절(節) 여부 - 월이 바뀌는 절기"""
        return self.index % 2 == 0

    def to_dict(self) -> Dict[str, object]:
        return {
            "name": self.name,
            "hanja": self.hanja,
            "index": self.index,
            "instant": self.instant.isoformat(timespec="minutes"),
            "month_index": self.month_index,
            "is_entering": self.is_entering,
        }


@dataclass(frozen=True)
class CurrentSolarTerm:
    """현재 절기 구간"""
    current: SolarTermBoundary
    next: SolarTermBoundary
    days_since_start: int
    days_until_next: int

    def to_dict(self) -> Dict[str, object]:
        return {
            "current": self.current.to_dict(),
            "next": self.next.to_dict(),
            "days_since_start": self.days_since_start,
            "days_until_next": self.days_until_next,
        }


def _is_leap(year: int) -> bool:
    return year % 4 == 0 and (year % 100 != 0 or year % 400 == 0)


def _leap_days_between(year: int) -> int:
    """
    2024-01-01 과 year-01-01 사이의 윤일 수 (부호 포함)
    - year > 2024: [2024, year-1] 의 윤년 수
    - year < 2024: -([year, 2023] 의 윤년 수)
    """
    if year >= BASE_YEAR:
        return sum(1 for y in range(BASE_YEAR, year) if _is_leap(y))
    return -sum(1 for y in range(year, BASE_YEAR) if _is_leap(y))


@cached(cache=LRUCache(maxsize=512), lock=threading.Lock())
def _terms_for_year(year: int) -> Tuple[SolarTermBoundary, ...]:
    years_diff = year - BASE_YEAR
    calendar_days = 365 * years_diff + _leap_days_between(year)
    drift = years_diff * TROPICAL_YEAR_DAYS - calendar_days
    jan_first = datetime(year, 1, 1)

    terms = []
    for idx, base_offset in enumerate(SOLAR_TERM_OFFSETS_2024):
        instant = jan_first + timedelta(days=base_offset + drift)
        terms.append(SolarTermBoundary(
            name=SOLAR_TERM_NAMES[idx],
            hanja=SOLAR_TERM_HANJA[idx],
            index=idx,
            instant=instant.replace(second=0, microsecond=0),
            month_index=idx // 2,
        ))
    return tuple(terms)


class SolarTermsCalculator:
    """
    절기 엔진
    - 연도별 24절기 절입 시각 생성 (저장하지 않고 필요할 때 계산)
    - 출생일시가 어느 절기 구간에 속하는지 판정
    - 입춘 보정된 연도 반환
    """

    def calculate_solar_terms_for_year(self, year: int) -> List[SolarTermBoundary]:
        """
        해당 연도 24절기 (입춘 ~ 다음해 1월 대한)

        Args:
            year: 절기 연도 (소한/대한은 year+1 년 1월에 위치)
        """
        # 인접 연도 계산을 위해 지원 범위 ±1 허용
        if not MIN_YEAR - 1 <= year <= MAX_YEAR + 1:
            raise InvalidInputError(f"지원 범위를 벗어난 연도: {year}", detail="1900~2100")
        return list(_terms_for_year(year))

    def get_lichun_date(self, year: int) -> datetime:
        """입춘 시각"""
        return self.calculate_solar_terms_for_year(year)[0].instant

    def get_saju_year(self, dt: datetime) -> int:
        """입춘 보정 연도: 입춘 전이면 year-1"""
        if dt < self.get_lichun_date(dt.year):
            return dt.year - 1
        return dt.year

    def get_saju_month(self, dt: datetime) -> int:
        """
        절기 기준 월 인덱스 (0=인월 ... 11=축월)

        직전 절(節)을 찾는다. 전년도 절기 세트도 함께 보므로
        - 1월 1일 ~ 소한: 자월(10)
        - 소한 ~ 입춘: 축월(11)
        """
        candidates = [
            term
            for year in (dt.year - 1, dt.year)
            for term in self.calculate_solar_terms_for_year(year)
            if term.is_entering and term.instant <= dt
        ]
        latest = max(candidates, key=lambda term: term.instant)
        return latest.month_index

    def get_current_solar_term(self, dt: datetime) -> CurrentSolarTerm:
        """현재 절기 / 다음 절기 / 경과 일수 / 남은 일수"""
        timeline = self._timeline(dt.year)

        current = None
        nxt = None
        for term in timeline:
            if term.instant <= dt:
                current = term
            else:
                nxt = term
                break

        days_since = int((dt - current.instant).total_seconds() // 86400)
        days_until = int((nxt.instant - dt).total_seconds() // 86400)
        return CurrentSolarTerm(
            current=current,
            next=nxt,
            days_since_start=days_since,
            days_until_next=days_until,
        )

    def get_solar_terms_between(self, start: datetime, end: datetime) -> List[SolarTermBoundary]:
        """start ~ end (포함) 사이의 절기"""
        if end < start:
            raise InvalidInputError("종료 시각이 시작 시각보다 빠릅니다")
        result = []
        for year in range(start.year - 1, end.year + 1):
            for term in self.calculate_solar_terms_for_year(year):
                if start <= term.instant <= end:
                    result.append(term)
        return result

    def get_solar_term_by_name(self, year: int, name: str) -> Optional[SolarTermBoundary]:
        """절기 이름(한글/한자)으로 조회"""
        for term in self.calculate_solar_terms_for_year(year):
            if name in (term.name, term.hanja):
                return term
        return None

    def _timeline(self, year: int) -> List[SolarTermBoundary]:
        """전년도 ~ 익년도 절기를 시간순으로"""
        timeline = []
        for y in (year - 1, year, year + 1):
            timeline.extend(self.calculate_solar_terms_for_year(y))
        return timeline


# 싱글톤
solar_terms_calculator = SolarTermsCalculator()


def get_lichun_adjusted_year(year: int, month: int, day: int, hour: int = 0, minute: int = 0) -> int:
    """
    입춘 보정된 연도 반환

    Args:
        year: 양력 연도
        month: 양력 월
        day: 양력 일
    """
    return solar_terms_calculator.get_saju_year(datetime(year, month, day, hour, minute))
