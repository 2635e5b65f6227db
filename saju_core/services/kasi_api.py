"""
한국천문연구원(KASI) 음양력 정보 API 연동
- getLunCalInfo: 양력 → 음력/간지 (일 단위, 월 단위 목록)
- getSolCalInfo: 음력 → 양력
- 재시도 없음: 실패는 CalendarUnavailableError 로 호출자에게 전달
- 간지 검색은 API가 제공하지 않음 (UnsupportedLookupError)
"""
import logging
from typing import Any, Dict, List, Optional

import httpx

from saju_core.services.calendar_source import (
    AlmanacEntry,
    CalendarDataSource,
    PillarType,
    in_supported_range,
)
from saju_core.services.errors import (
    CalendarUnavailableError,
    InvalidInputError,
    MalformedUpstreamDataError,
    UnconfiguredError,
    UnsupportedLookupError,
)
from saju_core.services.ganji import EarthlyBranch, parse_ganji

logger = logging.getLogger(__name__)

LEAP_MONTH_MARK = "윤"
COMMON_MONTH_MARK = "평"


class KasiCalendarSource(CalendarDataSource):
    """KASI API 만세력 소스"""

    name = "kasi"
    BASE_URL = "http://apis.data.go.kr/B090041/openapi/service/LrsrCldInfoService"

    def __init__(
        self,
        api_key: str,
        timeout: float = 20.0,
        client: Optional[httpx.Client] = None
    ):
        self.api_key = (api_key or "").strip()
        self.timeout = timeout
        self._client = client

    def _get_client(self) -> httpx.Client:
        """Lazy-init httpx client"""
        if self._client is None:
            self._client = httpx.Client(timeout=self.timeout)
        return self._client

    def close(self):
        if self._client is not None:
            self._client.close()
            self._client = None

    # ========== HTTP ==========

    def _call(self, operation: str, params: Dict[str, str]) -> List[Dict[str, Any]]:
        """
        KASI 호출 후 item 목록 반환

        Raises:
            UnconfiguredError: API 키 없음
            CalendarUnavailableError: 네트워크/HTTP 오류
            MalformedUpstreamDataError: 응답 구조 이상
        """
        if not self.api_key:
            raise UnconfiguredError("KASI API key not configured")

        query = dict(params)
        query["serviceKey"] = self.api_key
        query["_type"] = "json"
        query.setdefault("numOfRows", "50")
        label = f"{operation} {params}"

        try:
            response = self._get_client().get(f"{self.BASE_URL}/{operation}", params=query)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning(f"[KASI] API error: {label} → {e}")
            raise CalendarUnavailableError(f"calendar unavailable: {operation}", detail=str(e)) from e

        try:
            payload = response.json()
        except ValueError as e:
            raise MalformedUpstreamDataError(f"KASI 응답 JSON 해석 불가: {operation}") from e

        body = payload.get("response", {}).get("body")
        if body is None:
            header = payload.get("response", {}).get("header", {})
            raise CalendarUnavailableError(
                f"calendar unavailable: {operation}",
                detail=f"{header.get('resultCode')} {header.get('resultMsg')}"
            )

        items = body.get("items") or {}
        if not isinstance(items, dict):
            # 결과 없음이면 items 가 "" 로 온다
            return []
        item = items.get("item") or []
        if isinstance(item, dict):
            item = [item]

        logger.info(f"[KASI] {label} → {len(item)}건")
        return item

    # ========== 조회 ==========

    def find_by_solar_date(self, year: int, month: int, day: int) -> Optional[AlmanacEntry]:
        if not in_supported_range(year):
            return None
        items = self._call("getLunCalInfo", {
            "solYear": str(year),
            "solMonth": str(month).zfill(2),
            "solDay": str(day).zfill(2),
        })
        return self._item_to_entry(items[0]) if items else None

    def find_by_lunar_date(
        self, year: int, month: int, day: int, is_leap_month: bool = False
    ) -> Optional[AlmanacEntry]:
        if not in_supported_range(year):
            return None
        items = self._call("getSolCalInfo", {
            "lunYear": str(year),
            "lunMonth": str(month).zfill(2),
            "lunDay": str(day).zfill(2),
        })
        mark = LEAP_MONTH_MARK if is_leap_month else COMMON_MONTH_MARK
        for item in items:
            if (item.get("lunLeapmonth") or COMMON_MONTH_MARK) == mark:
                return self._item_to_entry(item)
        return None

    def find_by_year_month(self, year: int, month: int) -> List[AlmanacEntry]:
        if not in_supported_range(year):
            return []
        items = self._call("getLunCalInfo", {
            "solYear": str(year),
            "solMonth": str(month).zfill(2),
        })
        entries = [self._item_to_entry(item) for item in items]
        return sorted(entries, key=lambda e: e.solar_day)

    def find_by_ganzhi(
        self, ganzhi: str, pillar_type: PillarType, limit: int = 100
    ) -> List[AlmanacEntry]:
        raise UnsupportedLookupError("KASI API는 간지 검색을 지원하지 않습니다")

    def find_by_year_range(self, start_year: int, end_year: int) -> List[AlmanacEntry]:
        """월 단위로 반복 조회 (연도당 12회 호출)"""
        if end_year < start_year:
            raise InvalidInputError(f"연도 범위 오류: {start_year} > {end_year}")
        entries = []
        for year in range(max(start_year, 1900), min(end_year, 2100) + 1):
            for month in range(1, 13):
                entries.extend(self.find_by_year_month(year, month))
        return entries

    # ========== 변환 ==========

    @staticmethod
    def _item_to_entry(item: Dict[str, Any]) -> AlmanacEntry:
        try:
            solar = (int(item["solYear"]), int(item["solMonth"]), int(item["solDay"]))
            lunar = (int(item["lunYear"]), int(item["lunMonth"]), int(item["lunDay"]))
        except (KeyError, TypeError, ValueError) as e:
            raise MalformedUpstreamDataError(f"KASI 날짜 필드 이상: {item!r}") from e

        year_ganji = str(item.get("lunSecha", ""))
        month_ganji = str(item.get("lunWolgeon", ""))
        day_ganji = str(item.get("lunIljin", ""))

        # '갑진(甲辰)' → 한글/한자 분리
        year_pillar = parse_ganji(year_ganji)
        month_pillar = parse_ganji(month_ganji)
        day_pillar = parse_ganji(day_ganji)

        return AlmanacEntry(
            solar_year=solar[0],
            solar_month=solar[1],
            solar_day=solar[2],
            lunar_year=lunar[0],
            lunar_month=lunar[1],
            lunar_day=lunar[2],
            is_leap_month=item.get("lunLeapmonth", "") == LEAP_MONTH_MARK,
            year_ganji=year_pillar.ganji,
            month_ganji=month_pillar.ganji,
            day_ganji=day_pillar.ganji,
            year_ganji_hanja=year_pillar.hanja,
            month_ganji_hanja=month_pillar.hanja,
            day_ganji_hanja=day_pillar.hanja,
            weekday=item.get("solWeek"),
            zodiac=EarthlyBranch(year_pillar.branch).animal,
        )
