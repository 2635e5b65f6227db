"""
사주 계산 엔진 (서비스 파사드)
- 설정(calendar_source)에 따라 만세력 소스 연결: none / sqlite / kasi
- 만세력이 있으면 AlmanacSajuCalculator (Source of Truth), 없으면 공식 계산
- 🔥 대운/세운, 파생 분석까지 한 곳에서 호출
"""
import logging
from dataclasses import replace
from typing import List, Optional

from saju_core.config import Settings, get_settings
from saju_core.services.cache import CachedCalendarSource
from saju_core.services.calc_module import (
    AlmanacSajuCalculator,
    BirthMoment,
    FourPillars,
    Location,
    SajuCalculator,
    SajuResult,
    apply_true_solar_time,
    available_locations,
    get_location,
)
from saju_core.services.calendar_source import AlmanacEntry, CalendarDataSource, PillarType
from saju_core.services.daeun import (
    CurrentDaeun,
    DaeunEngine,
    DaeunList,
    Gender,
    SaeunEngine,
    SaeunEntry,
)
from saju_core.services.derive_module import DeriveModule, DerivedAnalysis
from saju_core.services.errors import InvalidInputError, MalformedUpstreamDataError, UnconfiguredError
from saju_core.services.ganji import Pillar, parse_ganji
from saju_core.services.solar_terms import SolarTermsCalculator, solar_terms_calculator

logger = logging.getLogger(__name__)


class SajuEngine:
    """
    사주 계산 엔진

    Args:
        calendar: 만세력 데이터 소스 (None 이면 공식 계산)
        require_almanac: True 면 만세력 없이 계산하지 않음
    """

    def __init__(
        self,
        calendar: Optional[CalendarDataSource] = None,
        require_almanac: bool = False,
        solar_terms: Optional[SolarTermsCalculator] = None
    ):
        self.calendar = calendar
        self.require_almanac = require_almanac
        self.solar_terms = solar_terms or solar_terms_calculator

        self.formula = SajuCalculator(self.solar_terms)
        self.almanac = (
            AlmanacSajuCalculator(calendar, self.solar_terms) if calendar is not None else None
        )
        self.daeun = DaeunEngine(calendar)
        self.saeun = SaeunEngine()
        self.derive = DeriveModule()

    @property
    def source_name(self) -> str:
        return self.calendar.name if self.calendar is not None else "formula"

    # ========== 사주 8글자 ==========

    def compute_four_pillars(
        self,
        birth: BirthMoment,
        longitude: Optional[float] = None,
        location: Optional[str] = None
    ) -> SajuResult:
        """
        사주 8글자 계산

        Args:
            birth: 출생 일시
            longitude: 출생지 경도 (주면 진태양시 보정)
            location: 출생 지역명 (예: '서울'), longitude 대신 사용
        """
        longitude = self._resolve_longitude(longitude, location)
        corrected, minutes = birth, 0
        if longitude is not None:
            corrected, minutes = apply_true_solar_time(birth, longitude)
            logger.info(f"[SajuEngine] 진태양시 보정: {minutes}분 → {corrected.label}")

        if self.almanac is not None:
            result = self.almanac.calculate(corrected)
        elif self.require_almanac:
            raise UnconfiguredError("만세력 데이터 소스가 설정되지 않았습니다")
        else:
            result = self.formula.calculate(corrected)

        if longitude is not None:
            result = replace(result, birth=birth, solar_time_correction_minutes=minutes)
        if location is not None:
            logger.info(f"[SajuEngine] 출생지 {location} (경도 {longitude})")
        return result

    @staticmethod
    def _resolve_longitude(longitude: Optional[float], location: Optional[str]) -> Optional[float]:
        if location is None:
            return longitude
        if longitude is not None:
            raise InvalidInputError("longitude 와 location 은 함께 지정할 수 없습니다")
        return get_location(location).longitude

    @staticmethod
    def list_locations() -> List[Location]:
        return [get_location(name) for name in available_locations()]

    # ========== 대운 ==========

    def compute_daeun_list(
        self,
        birth: BirthMoment,
        gender: Gender,
        max_age: Optional[int] = None,
        longitude: Optional[float] = None,
        location: Optional[str] = None
    ) -> DaeunList:
        """
        대운 10구간

        Args:
            max_age: 음수 검증에만 사용. 반환 목록은 항상 10구간이며
                잘라보기는 호출 측에서 DaeunList.until(max_age)
        """
        if max_age is not None and max_age < 0:
            raise InvalidInputError(f"max_age 오류: {max_age}")
        result = self.compute_four_pillars(birth, longitude, location)
        return self.daeun.calculate(result, Gender(gender))

    def get_current_daeun(self, birth: BirthMoment, gender: Gender, age: int) -> Optional[CurrentDaeun]:
        if age < 0:
            raise InvalidInputError(f"나이 오류: {age}")
        return self.compute_daeun_list(birth, gender).current(age)

    # ========== 세운 ==========

    def compute_saeun(self, year: int) -> Pillar:
        return self.saeun.calculate_year(year)

    def compute_saeun_range(
        self, start_year: int, end_year: int, birth_year: Optional[int] = None
    ) -> List[SaeunEntry]:
        return self.saeun.calculate_range(start_year, end_year, birth_year)

    # ========== 파생 분석 ==========

    def compute_derived_analyses(self, pillars: FourPillars) -> DerivedAnalysis:
        return self.derive.derive(pillars)

    # ========== 간지일 검색 ==========

    def find_ganzhi_days(self, ganzhi: str, year: Optional[int] = None, limit: int = 10) -> List[AlmanacEntry]:
        """
        특정 간지일 찾기 (만세력 필요)

        Args:
            ganzhi: '갑자', '甲子', '갑자(甲子)' 등
            year: 주면 해당 양력 연도 안에서만 검색
            limit: 최대 결과 수

        Returns:
            양력 날짜 오름차순 AlmanacEntry 목록
        """
        if limit < 1:
            raise InvalidInputError(f"limit 오류: {limit}")
        try:
            pillar = parse_ganji(ganzhi)
        except MalformedUpstreamDataError as e:
            raise InvalidInputError(e.message, detail=e.detail) from e
        if self.calendar is None:
            raise UnconfiguredError("간지일 검색에는 만세력 데이터 소스가 필요합니다")

        if year is None:
            entries = self.calendar.find_by_ganzhi(pillar.ganji, PillarType.DAY, limit)
        else:
            entries = [
                e for e in self.calendar.find_by_year_range(year, year)
                if e.day_pillar() == pillar
            ][:limit]
        logger.info(f"[SajuEngine] 간지일 검색: {pillar.ganji} year={year} → {len(entries)}건")
        return entries

    # ========== 캐시 ==========

    def cache_stats(self) -> Optional[dict]:
        if isinstance(self.calendar, CachedCalendarSource):
            return self.calendar.get_stats()
        return None


def build_calendar_source(settings: Settings) -> Optional[CalendarDataSource]:
    """설정 → 만세력 데이터 소스 (캐시 래핑 포함)"""
    kind = settings.calendar_source.strip().lower()

    if kind in ("", "none"):
        return None
    if kind == "sqlite":
        from saju_core.services.database import SqliteCalendarRepository
        source = SqliteCalendarRepository(settings.calendar_db_path)
    elif kind == "kasi":
        from saju_core.services.kasi_api import KasiCalendarSource
        source = KasiCalendarSource(
            api_key=settings.clean_kasi_api_key,
            timeout=settings.kasi_timeout_seconds
        )
    else:
        raise UnconfiguredError(f"알 수 없는 calendar_source: {settings.calendar_source!r}")

    if settings.cache_enabled:
        source = CachedCalendarSource(
            source,
            maxsize=settings.cache_max_size,
            ttl=settings.cache_ttl_seconds
        )
    return source


def build_engine(settings: Optional[Settings] = None) -> SajuEngine:
    settings = settings or get_settings()
    calendar = build_calendar_source(settings)
    engine = SajuEngine(calendar=calendar, require_almanac=settings.require_almanac)
    logger.info(f"[SajuEngine] 초기화: source={engine.source_name}, require_almanac={settings.require_almanac}")
    return engine
