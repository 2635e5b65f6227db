"""
/saju 엔드포인트

- 사주 8글자 (만세력 우선, 없으면 공식 계산)
- 대운 / 세운
- 파생 분석 (십성, 지장간, 12운성, 12신살)
- 간지일 검색, 진태양시 보정 지역 목록
- 절기, 시간대 옵션, 캐시 통계

엔진이 동기(blocking) 조회를 하므로 모든 핸들러는 일반 def (threadpool 실행)
"""
from fastapi import APIRouter, Depends, HTTPException, Path, Query
from typing import Optional, List
import logging

from saju_core.models.schemas import (
    AnalysisRequest,
    AnalysisResponse,
    DaeunRequest,
    DaeunResponse,
    ErrorResponse,
    GanzhiDayInfo,
    GanzhiDaysResponse,
    HourOption,
    LocationInfo,
    PillarsRequest,
    PillarsResponse,
    SaeunResponse,
    SajuWonGuk,
    SolarTermsResponse,
)
from saju_core.services import get_saju_engine
from saju_core.services.calc_module import FourPillars
from saju_core.services.errors import InvalidInputError, MalformedUpstreamDataError, SajuError
from saju_core.services.ganji import hour_options
from saju_core.services.saju_engine import SajuEngine

logger = logging.getLogger(__name__)
router = APIRouter()

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    502: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
}


def _raise_http(e: SajuError):
    logger.warning(f"[API] {e.error_code}: {e.message}")
    raise HTTPException(status_code=e.status_code, detail=e.to_dict())


def _saju_wonguk(pillars: FourPillars) -> SajuWonGuk:
    return SajuWonGuk(
        year_pillar=pillars.year.to_dict(),
        month_pillar=pillars.month.to_dict(),
        day_pillar=pillars.day.to_dict(),
        hour_pillar=pillars.hour.to_dict(),
    )


@router.post(
    "/saju/pillars",
    response_model=PillarsResponse,
    responses=ERROR_RESPONSES,
    summary="사주 8글자 계산",
    description="""
생년월일시를 입력받아 사주 원국을 계산합니다.

**계산 방식:**
- 만세력 연결 시: 년/월/일주는 만세력 값 그대로, 시주만 계산 (`source=almanac`)
- 만세력 미연결: 절기 + JDN 공식 계산 (`source=formula`, 양력만)

**진태양시 보정:** `longitude` 또는 `location`(지역명) 입력 시 (135 - 경도) x 4분 보정
    """
)
def calculate_pillars(
    request: PillarsRequest,
    engine: SajuEngine = Depends(get_saju_engine)
):
    try:
        birth = request.to_birth_moment()
        result = engine.compute_four_pillars(birth, request.longitude, request.location)
    except SajuError as e:
        _raise_http(e)

    pillars = result.pillars
    day_master = pillars.day_master
    logger.info(
        f"[API] pillars: {birth.label} → {pillars.stem_string}/{pillars.branch_string} | source={result.source}"
    )

    return PillarsResponse(
        birth_info=birth.label,
        solar_date=result.solar_date.isoformat(),
        saju=_saju_wonguk(pillars),
        stem_string=pillars.stem_string,
        branch_string=pillars.branch_string,
        day_master=day_master.korean,
        day_master_element=day_master.element.value,
        day_master_description=day_master.description,
        saju_year=result.saju_year,
        saju_month=result.saju_month,
        source=result.source,
        solar_time_correction_minutes=result.solar_time_correction_minutes,
        almanac=result.almanac.to_dict() if result.almanac else None,
    )


@router.post(
    "/saju/daeun",
    response_model=DaeunResponse,
    responses=ERROR_RESPONSES,
    summary="대운 10구간",
    description="양남음녀 순행, 음남양녀 역행. 대운수는 만세력 절입일 기준 (없으면 근사값 5/4)."
)
def calculate_daeun(
    request: DaeunRequest,
    engine: SajuEngine = Depends(get_saju_engine)
):
    try:
        daeun = engine.compute_daeun_list(
            request.to_birth_moment(),
            request.gender,
            max_age=request.max_age,
            longitude=request.longitude,
            location=request.location
        )
    except SajuError as e:
        _raise_http(e)

    periods = daeun.until(request.max_age) if request.max_age is not None else list(daeun.periods)
    current = daeun.current(request.current_age) if request.current_age is not None else None

    data = daeun.to_dict()
    data["periods"] = [p.to_dict() for p in periods]
    data["current"] = current.to_dict() if current else None
    data["board"] = daeun.format_board()
    return DaeunResponse(**data)


@router.get(
    "/saju/saeun",
    response_model=SaeunResponse,
    responses=ERROR_RESPONSES,
    summary="세운 (연운)",
    description="`year` 단일 조회 또는 `start_year`~`end_year` 범위 조회 (1900 = 경자년 기준)"
)
def calculate_saeun(
    year: Optional[int] = Query(None, ge=1900, le=2100),
    start_year: Optional[int] = Query(None, ge=1900, le=2100),
    end_year: Optional[int] = Query(None, ge=1900, le=2100),
    birth_year: Optional[int] = Query(None, ge=1900, le=2100),
    engine: SajuEngine = Depends(get_saju_engine)
):
    try:
        if year is not None:
            entries = engine.compute_saeun_range(year, year, birth_year)
        elif start_year is not None and end_year is not None:
            entries = engine.compute_saeun_range(start_year, end_year, birth_year)
        else:
            raise InvalidInputError("year 또는 start_year/end_year 가 필요합니다")
    except SajuError as e:
        _raise_http(e)

    return SaeunResponse(entries=[e.to_dict() for e in entries])


@router.post(
    "/saju/analysis",
    response_model=AnalysisResponse,
    responses=ERROR_RESPONSES,
    summary="사주 파생 분석",
    description="출생 정보 또는 4기둥 간지로 십성, 지장간, 12운성, 12신살, 오행/음양 분포를 계산합니다."
)
def analyze(
    request: AnalysisRequest,
    engine: SajuEngine = Depends(get_saju_engine)
):
    try:
        pillars = _resolve_pillars(request, engine)
        analysis = engine.compute_derived_analyses(pillars)
    except SajuError as e:
        _raise_http(e)

    return AnalysisResponse(saju=_saju_wonguk(pillars), analysis=analysis.to_dict())


def _resolve_pillars(request: AnalysisRequest, engine: SajuEngine) -> FourPillars:
    if request.birth is not None:
        birth = request.birth
        return engine.compute_four_pillars(birth.to_birth_moment(), birth.longitude, birth.location).pillars

    texts = (request.year_pillar, request.month_pillar, request.day_pillar, request.hour_pillar)
    if not all(texts):
        raise InvalidInputError("birth 또는 4기둥(year/month/day/hour_pillar)이 필요합니다")
    try:
        return FourPillars.from_strings(*texts)
    except MalformedUpstreamDataError as e:
        # 사용자 입력 간지 오류는 400
        raise InvalidInputError(e.message, detail=e.detail) from e


@router.get(
    "/saju/ganzhi-days",
    response_model=GanzhiDaysResponse,
    responses={**ERROR_RESPONSES, 501: {"model": ErrorResponse}},
    summary="특정 간지일 찾기",
    description="특정 간지(갑자, 甲子 등)에 해당하는 날짜를 만세력에서 찾습니다. `year` 를 주면 해당 연도 안에서만 검색합니다."
)
def find_ganzhi_days(
    ganzhi: str = Query(..., description="찾을 간지 (예: 갑자, 甲子)"),
    year: Optional[int] = Query(None, ge=1900, le=2100),
    limit: int = Query(10, ge=1, le=1000),
    engine: SajuEngine = Depends(get_saju_engine)
):
    try:
        entries = engine.find_ganzhi_days(ganzhi, year=year, limit=limit)
    except SajuError as e:
        _raise_http(e)

    results = [
        GanzhiDayInfo(
            solar_date=entry.solar_date.isoformat(),
            lunar_date=f"{entry.lunar_year:04d}-{entry.lunar_month:02d}-{entry.lunar_day:02d}",
            is_leap_month=entry.is_leap_month,
            day_pillar=entry.day_ganji,
            day_pillar_hanja=entry.day_ganji_hanja,
            weekday=entry.weekday,
            constellation=entry.constellation,
            zodiac=entry.zodiac,
        )
        for entry in entries
    ]
    return GanzhiDaysResponse(ganzhi=ganzhi, year=year, count=len(results), results=results)


@router.get(
    "/saju/locations",
    response_model=List[LocationInfo],
    summary="진태양시 보정 지역 목록"
)
def get_locations():
    """`location` 으로 쓸 수 있는 지역명과 보정 분"""
    return [loc.to_dict() for loc in SajuEngine.list_locations()]


@router.get(
    "/saju/solar-terms/{year}",
    response_model=SolarTermsResponse,
    summary="연도별 24절기 절입 시각"
)
def get_solar_terms(
    year: int = Path(..., ge=1900, le=2100),
    engine: SajuEngine = Depends(get_saju_engine)
):
    terms = engine.solar_terms.calculate_solar_terms_for_year(year)
    return SolarTermsResponse(year=year, terms=[t.to_dict() for t in terms])


@router.get(
    "/saju/hour-options",
    response_model=List[HourOption],
    summary="시간대 선택 옵션",
    description="출생 시간 입력을 위한 시간대(2시간 단위) 선택 옵션 목록"
)
def get_hour_options():
    """시간대 선택 옵션 목록"""
    return hour_options()


@router.get(
    "/saju/cache-stats",
    summary="만세력 캐시 통계"
)
def get_cache_stats(engine: SajuEngine = Depends(get_saju_engine)):
    """캐시 통계 조회"""
    stats = engine.cache_stats()
    if stats is None:
        return {"enabled": False, "source": engine.source_name}
    return {"enabled": True, **stats}
