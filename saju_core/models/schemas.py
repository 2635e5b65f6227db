"""
Pydantic 스키마 정의
API 요청/응답 모델
"""
from pydantic import BaseModel, Field
from typing import Optional, List, Literal, Dict, Any

from saju_core.services.calc_module import BirthMoment
from saju_core.services.daeun import Gender


# ============ 공통 입력 ============

class BirthInput(BaseModel):
    """출생 정보"""
    birth_year: int = Field(..., ge=1900, le=2100, description="출생 년도")
    birth_month: int = Field(..., ge=1, le=12, description="출생 월")
    birth_day: int = Field(..., ge=1, le=31, description="출생 일")
    birth_hour: int = Field(..., ge=0, le=23, description="출생 시간 (0-23시)")
    birth_minute: int = Field(0, ge=0, le=59, description="출생 분 (0-59)")
    is_solar: bool = Field(True, description="양력 여부 (False = 음력)")
    is_leap_month: bool = Field(False, description="음력 윤달 여부")
    longitude: Optional[float] = Field(
        None, ge=-180, le=180, description="출생지 경도 (입력 시 진태양시 보정)"
    )
    location: Optional[str] = Field(
        None, description="출생 지역명 (예: 서울, 부산). longitude 대신 사용"
    )

    def to_birth_moment(self) -> BirthMoment:
        return BirthMoment(
            year=self.birth_year,
            month=self.birth_month,
            day=self.birth_day,
            hour=self.birth_hour,
            minute=self.birth_minute,
            is_solar=self.is_solar,
            is_leap_month=self.is_leap_month,
        )


# ============ /saju/pillars ============

class PillarsRequest(BirthInput):
    """사주 계산 요청"""

    class Config:
        json_schema_extra = {
            "example": {
                "birth_year": 2000,
                "birth_month": 3,
                "birth_day": 7,
                "birth_hour": 12,
                "birth_minute": 34,
                "is_solar": True,
            }
        }


class Pillar(BaseModel):
    """사주 기둥 (년/월/일/시주)"""
    gan: str = Field(..., description="천간 (갑을병정무기경신임계)")
    ji: str = Field(..., description="지지 (자축인묘진사오미신유술해)")
    ganji: str = Field(..., description="간지 조합 (예: 갑자)")
    hanja: str = Field(..., description="간지 한자 (예: 甲子)")

    # 오행 정보
    gan_element: str = Field(..., description="천간 오행 (목화토금수)")
    ji_element: str = Field(..., description="지지 오행")

    # 인덱스
    gan_index: int = Field(..., description="천간 인덱스 (0-9)")
    ji_index: int = Field(..., description="지지 인덱스 (0-11)")


class SajuWonGuk(BaseModel):
    """사주 원국 (4개 기둥)"""
    year_pillar: Pillar = Field(..., description="년주")
    month_pillar: Pillar = Field(..., description="월주")
    day_pillar: Pillar = Field(..., description="일주 (일간=나)")
    hour_pillar: Pillar = Field(..., description="시주")


class PillarsResponse(BaseModel):
    """사주 계산 응답"""
    success: bool = True

    # 입력 정보 에코
    birth_info: str = Field(..., description="입력된 생년월일시")
    solar_date: str = Field(..., description="양력 날짜 (YYYY-MM-DD)")

    # 사주 원국
    saju: SajuWonGuk
    stem_string: str = Field(..., description="천간 4글자 (시일월년)")
    branch_string: str = Field(..., description="지지 4글자 (시일월년)")

    # 일간 정보
    day_master: str = Field(..., description="일간")
    day_master_element: str = Field(..., description="일간 오행")
    day_master_description: str = Field(..., description="일간 설명")

    # 절기 기준 연/월
    saju_year: int = Field(..., description="입춘 보정 연도")
    saju_month: int = Field(..., description="절기 월 인덱스 (0=인월 ... 11=축월)")

    source: Literal["almanac", "formula"] = Field(..., description="계산 방식")
    solar_time_correction_minutes: int = Field(0, description="진태양시 보정 분")

    # 만세력 부가 정보 (음력, 요일, 28수, 띠, 절기, 공휴일)
    almanac: Optional[Dict[str, Any]] = None


# ============ /saju/daeun ============

class DaeunRequest(BirthInput):
    """대운 계산 요청"""
    gender: Gender = Field(..., description="성별")
    max_age: Optional[int] = Field(None, ge=0, le=150, description="이 나이 이전에 시작하는 구간만")
    current_age: Optional[int] = Field(None, ge=0, le=150, description="현재 나이 (현재 대운 표시)")

    class Config:
        json_schema_extra = {
            "example": {
                "birth_year": 2000,
                "birth_month": 3,
                "birth_day": 7,
                "birth_hour": 12,
                "birth_minute": 34,
                "gender": "male",
                "current_age": 26,
            }
        }


class DaeunPeriodInfo(BaseModel):
    start_age: int
    end_age: int
    ganji: str
    hanja: str
    start_year: int
    end_year: int


class CurrentDaeunInfo(BaseModel):
    age: int
    period: DaeunPeriodInfo
    years_in_period: int


class DaeunResponse(BaseModel):
    """대운 응답"""
    success: bool = True
    direction: Literal["forward", "backward"] = Field(..., description="대운 방향 (순행/역행)")
    start_age: int = Field(..., description="대운수")
    start_age_method: Literal["almanac", "heuristic"] = Field(..., description="대운수 산출 방식")
    distance_days: Optional[int] = Field(None, description="절입까지 일수")
    month_pillar: str = Field(..., description="월주")
    periods: List[DaeunPeriodInfo] = Field(default_factory=list, description="대운 구간")
    current: Optional[CurrentDaeunInfo] = None
    board: str = Field("", description="대운표 텍스트")


# ============ /saju/saeun ============

class SaeunEntryInfo(BaseModel):
    year: int
    ganji: str
    hanja: str
    age: Optional[int] = None


class SaeunResponse(BaseModel):
    """세운 응답"""
    success: bool = True
    entries: List[SaeunEntryInfo]


# ============ /saju/analysis ============

class AnalysisRequest(BaseModel):
    """파생 분석 요청: 출생 정보 또는 4기둥 직접 입력"""
    birth: Optional[BirthInput] = Field(None, description="출생 정보")

    # 또는 직접 사주 입력
    year_pillar: Optional[str] = Field(None, description="년주 (예: 경진)")
    month_pillar: Optional[str] = Field(None, description="월주")
    day_pillar: Optional[str] = Field(None, description="일주")
    hour_pillar: Optional[str] = Field(None, description="시주")

    class Config:
        json_schema_extra = {
            "example": {
                "year_pillar": "경진",
                "month_pillar": "기묘",
                "day_pillar": "갑자",
                "hour_pillar": "경오",
            }
        }


class AnalysisResponse(BaseModel):
    """파생 분석 응답"""
    success: bool = True
    saju: SajuWonGuk
    analysis: Dict[str, Any] = Field(..., description="십성/지장간/12운성/12신살/오행 분포")


# ============ 절기 / 시간대 ============

class SolarTermInfo(BaseModel):
    name: str
    hanja: str
    index: int
    instant: str = Field(..., description="절입 시각 (KST, YYYY-MM-DDTHH:MM)")
    month_index: int
    is_entering: bool


class SolarTermsResponse(BaseModel):
    success: bool = True
    year: int
    terms: List[SolarTermInfo]


class HourOption(BaseModel):
    """시간대 선택 옵션"""
    index: int = Field(..., description="지지 인덱스 (0-11)")
    ji: str = Field(..., description="지지 한글 (자~해)")
    ji_hanja: str = Field(..., description="지지 한자 (子~亥)")
    range_start: str = Field(..., description="시작 시간 (HH:MM)")
    range_end: str = Field(..., description="종료 시간 (HH:MM)")
    label: str = Field(..., description="표시 라벨")


class LocationInfo(BaseModel):
    """진태양시 보정 지역"""
    name: str
    longitude: float
    latitude: float
    correction_minutes: int = Field(..., description="표준시 대비 보정 분")


# ============ /saju/ganzhi-days ============

class GanzhiDayInfo(BaseModel):
    """간지일 검색 결과 1건"""
    solar_date: str = Field(..., description="양력 날짜 (YYYY-MM-DD)")
    lunar_date: str = Field(..., description="음력 날짜 (YYYY-MM-DD)")
    is_leap_month: bool
    day_pillar: str = Field(..., description="일주 (한글)")
    day_pillar_hanja: str = Field("", description="일주 (한자)")
    weekday: Optional[str] = None
    constellation: Optional[str] = None
    zodiac: Optional[str] = None


class GanzhiDaysResponse(BaseModel):
    success: bool = True
    ganzhi: str
    year: Optional[int] = None
    count: int
    results: List[GanzhiDayInfo]


class ErrorResponse(BaseModel):
    """에러 응답"""
    success: bool = False
    error_code: str
    message: str
    detail: Optional[str] = None
