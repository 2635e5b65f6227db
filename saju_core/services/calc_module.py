"""
━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
1️⃣ CALC 모듈 - 사주 8글자 계산
━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
SajuCalculator        : 공식 계산 (절기 연/월주 + JDN 일주 + 시두법)
AlmanacSajuCalculator : 만세력 년/월/일주 그대로 사용, 시주만 내부 계산
야자시(23시~) → 다음 날 기준 일주/시주
진태양시 보정: 경도 기준 (135 - 경도) x 4분
━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
"""
import logging
from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

from saju_core.services.calendar_source import AlmanacEntry, CalendarDataSource
from saju_core.services.errors import InvalidInputError, NotFoundError, UnconfiguredError
from saju_core.services.ganji import (
    GAPJA_CYCLE,
    MONTH_BRANCHES,
    YEAR_CYCLE,
    HeavenlyStem,
    Pillar,
    apply_night_zi,
    ganji_calc,
    parse_ganji,
)
from saju_core.services.solar_terms import (
    MAX_YEAR,
    MIN_YEAR,
    SolarTermsCalculator,
    solar_terms_calculator,
)

logger = logging.getLogger(__name__)

# 한국 표준시 기준 경도
KST_MERIDIAN = 135.0


@dataclass(frozen=True)
class BirthMoment:
    """출생 일시 (입력값, 생성 시 범위 검증)"""
    year: int
    month: int
    day: int
    hour: int
    minute: int = 0
    is_solar: bool = True
    is_leap_month: bool = False

    def __post_init__(self):
        ranges = (
            ("year", self.year, MIN_YEAR, MAX_YEAR),
            ("month", self.month, 1, 12),
            ("day", self.day, 1, 31),
            ("hour", self.hour, 0, 23),
            ("minute", self.minute, 0, 59),
        )
        for field_name, value, lo, hi in ranges:
            if isinstance(value, bool) or not isinstance(value, int) or not lo <= value <= hi:
                raise InvalidInputError(
                    f"{field_name} 범위 오류: {value!r}",
                    detail=f"{field_name}: {lo}~{hi}"
                )
        if self.is_solar and self.is_leap_month:
            raise InvalidInputError("윤달 표시는 음력 입력에만 사용할 수 있습니다")

    @property
    def label(self) -> str:
        kind = "양력" if self.is_solar else ("음력 윤달" if self.is_leap_month else "음력")
        return f"{self.year}년 {self.month}월 {self.day}일 {self.hour}시 {self.minute}분 ({kind})"

    def to_datetime(self) -> datetime:
        """양력 입력 → datetime (존재하지 않는 날짜는 InvalidInputError)"""
        if not self.is_solar:
            raise InvalidInputError("음력 날짜는 datetime 으로 바로 변환할 수 없습니다")
        try:
            return datetime(self.year, self.month, self.day, self.hour, self.minute)
        except ValueError as e:
            raise InvalidInputError(f"존재하지 않는 날짜: {self.year}-{self.month:02d}-{self.day:02d}") from e

    def with_solar_date(self, solar: date) -> "BirthMoment":
        return replace(self, year=solar.year, month=solar.month, day=solar.day,
                       is_solar=True, is_leap_month=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "year": self.year,
            "month": self.month,
            "day": self.day,
            "hour": self.hour,
            "minute": self.minute,
            "is_solar": self.is_solar,
            "is_leap_month": self.is_leap_month,
        }


@dataclass(frozen=True)
class FourPillars:
    """사주 8글자 (4기둥)"""
    year: Pillar
    month: Pillar
    day: Pillar
    hour: Pillar

    @property
    def day_master(self) -> HeavenlyStem:
        return self.day.stem

    def items(self) -> List[Tuple[str, Pillar]]:
        return [("year", self.year), ("month", self.month), ("day", self.day), ("hour", self.hour)]

    @property
    def stem_string(self) -> str:
        """천간 4글자 (시-일-월-년 순)"""
        return "".join(p.stem.korean for p in (self.hour, self.day, self.month, self.year))

    @property
    def branch_string(self) -> str:
        """지지 4글자 (시-일-월-년 순)"""
        return "".join(p.branch.korean for p in (self.hour, self.day, self.month, self.year))

    @classmethod
    def from_strings(cls, year: str, month: str, day: str, hour: str) -> "FourPillars":
        return cls(
            year=parse_ganji(year),
            month=parse_ganji(month),
            day=parse_ganji(day),
            hour=parse_ganji(hour),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {name: pillar.to_dict() for name, pillar in self.items()}


@dataclass(frozen=True)
class SajuResult:
    """사주 계산 결과 (4기둥 + 만세력 부가 정보)"""
    birth: BirthMoment
    solar_date: date
    pillars: FourPillars
    saju_year: int
    saju_month: int
    source: str                                   # "almanac" | "formula"
    almanac: Optional[AlmanacEntry] = None
    solar_time_correction_minutes: int = 0

    @property
    def day_master(self) -> HeavenlyStem:
        return self.pillars.day_master

    def to_dict(self) -> Dict[str, Any]:
        return {
            "birth": self.birth.to_dict(),
            "solar_date": self.solar_date.isoformat(),
            "pillars": self.pillars.to_dict(),
            "saju_year": self.saju_year,
            "saju_month": self.saju_month,
            "source": self.source,
            "almanac": self.almanac.to_dict() if self.almanac else None,
            "solar_time_correction_minutes": self.solar_time_correction_minutes,
        }


# ===== 진태양시 보정 =====

@dataclass(frozen=True)
class Location:
    """출생지 (경도/위도)"""
    name: str
    longitude: float
    latitude: float

    @property
    def correction_minutes(self) -> int:
        return solar_time_correction_minutes(self.longitude)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "longitude": self.longitude,
            "latitude": self.latitude,
            "correction_minutes": self.correction_minutes,
        }


# 한국 주요 도시
KOREA_LOCATIONS: Dict[str, Location] = {
    loc.name: loc for loc in [
        Location("서울", 126.9780, 37.5665),
        Location("부산", 129.0756, 35.1796),
        Location("대구", 128.6014, 35.8714),
        Location("인천", 126.7052, 37.4563),
        Location("광주", 126.8526, 35.1595),
        Location("대전", 127.3845, 36.3504),
        Location("울산", 129.3114, 35.5384),
        Location("수원", 127.0286, 37.2636),
        Location("창원", 128.6811, 35.2281),
        Location("고양", 126.8356, 37.6564),
        Location("용인", 127.1776, 37.2411),
        Location("성남", 127.1378, 37.4449),
        Location("청주", 127.4890, 36.6424),
        Location("전주", 127.1480, 35.8242),
        Location("안산", 126.8219, 37.3219),
        Location("천안", 127.1522, 36.8151),
        Location("포항", 129.3435, 36.0190),
        Location("의정부", 127.0477, 37.7380),
        Location("원주", 127.9202, 37.3422),
        Location("춘천", 127.7298, 37.8813),
    ]
}


def get_location(name: str) -> Location:
    """
    지역명 → Location

    Raises:
        InvalidInputError: 등록되지 않은 지역
    """
    key = (name or "").strip()
    location = KOREA_LOCATIONS.get(key)
    if location is None:
        raise InvalidInputError(
            f"지원하지 않는 지역: {name!r}",
            detail=", ".join(KOREA_LOCATIONS)
        )
    return location


def available_locations() -> List[str]:
    return list(KOREA_LOCATIONS)


def solar_time_correction_minutes(longitude: float) -> int:
    """표준시(동경 135도) 대비 보정 분 (경도 1도 = 4분)"""
    if not -180.0 <= longitude <= 180.0:
        raise InvalidInputError(f"경도 범위 오류: {longitude}", detail="-180~180")
    return round((KST_MERIDIAN - longitude) * 4)


def apply_true_solar_time(birth: BirthMoment, longitude: float) -> Tuple[BirthMoment, int]:
    """
    진태양시 보정된 출생 일시

    Returns:
        (보정된 BirthMoment, 보정 분)
    """
    if not birth.is_solar:
        raise InvalidInputError("진태양시 보정은 양력 입력에만 적용할 수 있습니다")
    minutes = solar_time_correction_minutes(longitude)
    corrected = birth.to_datetime() - timedelta(minutes=minutes)
    return BirthMoment(
        year=corrected.year,
        month=corrected.month,
        day=corrected.day,
        hour=corrected.hour,
        minute=corrected.minute,
    ), minutes


class SajuCalculator:
    """
    사주 8글자 계산 (공식 전용, 외부 데이터 없음)
    - 연주: 입춘 보정 연도 - 1984(갑자)
    - 월주: 절기 월 + 연두법
    - 일주: JDN - JDN(1999-12-14 경자)
    - 시주: 시두법
    """

    source = "formula"

    def __init__(self, solar_terms: Optional[SolarTermsCalculator] = None):
        self.solar_terms = solar_terms or solar_terms_calculator

    def calculate(self, birth: BirthMoment) -> SajuResult:
        if not birth.is_solar:
            raise UnconfiguredError("음력 입력은 만세력 데이터 소스가 필요합니다")

        birth_dt = birth.to_datetime()
        logger.info(f"[CalcModule] 공식 계산: {birth_dt:%Y-%m-%d %H:%M}")

        saju_year = self.solar_terms.get_saju_year(birth_dt)
        saju_month = self.solar_terms.get_saju_month(birth_dt)

        year_pillar = ganji_calc.calc_year_ganji(saju_year)
        month_pillar = ganji_calc.calc_month_ganji(year_pillar.stem, saju_month)
        day_pillar = self.day_pillar(birth.year, birth.month, birth.day, birth.hour)
        hour_pillar = ganji_calc.calc_hour_ganji(day_pillar.stem, birth.hour)

        pillars = FourPillars(year=year_pillar, month=month_pillar, day=day_pillar, hour=hour_pillar)
        logger.info(f"[CalcModule] 완료: {year_pillar} {month_pillar} {day_pillar} {hour_pillar}")

        return SajuResult(
            birth=birth,
            solar_date=birth_dt.date(),
            pillars=pillars,
            saju_year=saju_year,
            saju_month=saju_month,
            source=self.source,
        )

    def day_pillar(self, year: int, month: int, day: int, hour: int = 0) -> Pillar:
        """야자시 보정 후 일주"""
        y, m, d = apply_night_zi(year, month, day, hour)
        return ganji_calc.calc_day_ganji(y, m, d)


class AlmanacSajuCalculator:
    """
    만세력 기반 사주 계산
    - 년/월/일주: 만세력 값 그대로 (Source of Truth)
    - 시주: 내부 계산
    - 23시 이후 출생: 일주를 60갑자 한 칸 진행 (= 다음 날 일주)
    - 공식 계산과 불일치하면 경고 로그 (만세력 우선)
    """

    source = "almanac"

    def __init__(
        self,
        calendar: CalendarDataSource,
        solar_terms: Optional[SolarTermsCalculator] = None,
        cross_check: bool = True
    ):
        self.calendar = calendar
        self.formula = SajuCalculator(solar_terms)
        self.cross_check = cross_check

    def lookup(self, birth: BirthMoment) -> AlmanacEntry:
        if birth.is_solar:
            entry = self.calendar.find_by_solar_date(birth.year, birth.month, birth.day)
        else:
            entry = self.calendar.find_by_lunar_date(
                birth.year, birth.month, birth.day, birth.is_leap_month
            )
        if entry is None:
            raise NotFoundError(f"만세력 데이터 없음: {birth.label}")
        return entry

    def calculate(self, birth: BirthMoment) -> SajuResult:
        entry = self.lookup(birth)
        logger.info(f"[CalcModule] 만세력 조회: {birth.label} → {entry.solar_date}")

        year_pillar = entry.year_pillar()
        month_pillar = entry.month_pillar()
        day_pillar = entry.day_pillar()

        if birth.hour >= 23:
            day_pillar = GAPJA_CYCLE.pillar_from_offset(day_pillar.index + 1)

        hour_pillar = ganji_calc.calc_hour_ganji(day_pillar.stem, birth.hour)
        pillars = FourPillars(year=year_pillar, month=month_pillar, day=day_pillar, hour=hour_pillar)

        solar_birth = birth.with_solar_date(entry.solar_date)
        if self.cross_check:
            self._cross_check(solar_birth, pillars)

        logger.info(f"[CalcModule] 완료: {year_pillar} {month_pillar} {day_pillar} {hour_pillar}")
        return SajuResult(
            birth=birth,
            solar_date=entry.solar_date,
            pillars=pillars,
            saju_year=self._saju_year(entry.solar_year, year_pillar, solar_birth),
            saju_month=MONTH_BRANCHES.index(month_pillar.branch),
            source=self.source,
            almanac=entry,
        )

    def _saju_year(self, solar_year: int, year_pillar: Pillar, solar_birth: BirthMoment) -> int:
        """만세력 연주와 일치하는 연도 (입춘 전이면 전년도)"""
        for candidate in (solar_year, solar_year - 1):
            if YEAR_CYCLE.pillar_at(candidate) == year_pillar:
                return candidate
        return self.formula.solar_terms.get_saju_year(solar_birth.to_datetime())

    def _cross_check(self, solar_birth: BirthMoment, pillars: FourPillars):
        formula = self.formula.calculate(solar_birth).pillars
        for name, pillar in pillars.items():
            expected = getattr(formula, name)
            if pillar != expected:
                logger.warning(
                    "⚠️ 만세력 vs 공식 불일치! %s: 만세력=%s, 공식=%s → 만세력 우선 사용",
                    name, pillar.ganji, expected.ganji
                )
