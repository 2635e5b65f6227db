"""
만세력 데이터 소스 인터페이스
- 사주 엔진이 읽기 전용으로 사용하는 외부 만세력 (양력/음력/년월일 간지)
- 구현체: SQLite 만세력 테이블(database.py), KASI API(kasi_api.py), 캐시 래퍼(cache.py)
- 지원 범위(1900~2100) 밖이거나 없는 날짜는 None / [] (not found)
"""
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional

from saju_core.services.ganji import Pillar, parse_ganji

MIN_YEAR = 1900
MAX_YEAR = 2100


class PillarType(str, Enum):
    YEAR = "year"
    MONTH = "month"
    DAY = "day"


@dataclass(frozen=True)
class AlmanacEntry:
    """만세력 1일치 데이터"""
    # 양력
    solar_year: int
    solar_month: int
    solar_day: int

    # 음력
    lunar_year: int
    lunar_month: int
    lunar_day: int
    is_leap_month: bool

    # 간지 (한글)
    year_ganji: str
    month_ganji: str
    day_ganji: str

    # 간지 (한자)
    year_ganji_hanja: str = ""
    month_ganji_hanja: str = ""
    day_ganji_hanja: str = ""

    # 부가 정보
    weekday: Optional[str] = None            # 요일 (한글 오행 요일)
    weekday_hanja: Optional[str] = None
    constellation: Optional[str] = None      # 28수
    zodiac: Optional[str] = None             # 띠
    solar_term: Optional[str] = None         # 절기 (절입일만)
    solar_term_hanja: Optional[str] = None
    solar_term_time: Optional[str] = None
    is_holiday: bool = False

    @property
    def solar_date(self) -> date:
        return date(self.solar_year, self.solar_month, self.solar_day)

    def year_pillar(self) -> Pillar:
        return parse_ganji(self.year_ganji or self.year_ganji_hanja)

    def month_pillar(self) -> Pillar:
        return parse_ganji(self.month_ganji or self.month_ganji_hanja)

    def day_pillar(self) -> Pillar:
        return parse_ganji(self.day_ganji or self.day_ganji_hanja)

    def pillar(self, pillar_type: PillarType) -> Pillar:
        return {
            PillarType.YEAR: self.year_pillar,
            PillarType.MONTH: self.month_pillar,
            PillarType.DAY: self.day_pillar,
        }[PillarType(pillar_type)]()

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def in_supported_range(year: int) -> bool:
    return MIN_YEAR <= year <= MAX_YEAR


class CalendarDataSource(ABC):
    """만세력 조회 인터페이스 (읽기 전용, 재시도 없음)"""

    name = "calendar"

    @abstractmethod
    def find_by_solar_date(self, year: int, month: int, day: int) -> Optional[AlmanacEntry]:
        """양력 날짜로 조회"""

    @abstractmethod
    def find_by_lunar_date(
        self, year: int, month: int, day: int, is_leap_month: bool = False
    ) -> Optional[AlmanacEntry]:
        """음력 날짜로 조회"""

    @abstractmethod
    def find_by_year_month(self, year: int, month: int) -> List[AlmanacEntry]:
        """양력 연/월 전체 (일 오름차순)"""

    @abstractmethod
    def find_by_ganzhi(
        self, ganzhi: str, pillar_type: PillarType, limit: int = 100
    ) -> List[AlmanacEntry]:
        """간지로 조회 (양력 날짜 오름차순)"""

    @abstractmethod
    def find_by_year_range(self, start_year: int, end_year: int) -> List[AlmanacEntry]:
        """양력 연도 범위 조회 (날짜 오름차순)"""
