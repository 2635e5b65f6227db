"""
사주 엔진 에러 정의
- 모든 도메인 에러는 SajuError를 상속
- error_code / status_code 는 라우터에서 HTTP 응답으로 그대로 변환
"""
from typing import Optional


class SajuError(Exception):
    """사주 엔진 기본 에러"""

    error_code = "SAJU_ERROR"
    status_code = 500

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail

    def to_dict(self) -> dict:
        return {
            "error_code": self.error_code,
            "message": self.message,
            "detail": self.detail,
        }


class InvalidInputError(SajuError):
    """입력 범위 오류 (조회 전에 거부)"""

    error_code = "INVALID_INPUT"
    status_code = 400


class NotFoundError(SajuError):
    """만세력에 해당 날짜 없음"""

    error_code = "NOT_FOUND"
    status_code = 404


class MalformedUpstreamDataError(SajuError):
    """만세력 간지 문자열 해석 불가"""

    error_code = "MALFORMED_UPSTREAM_DATA"
    status_code = 502


class CalendarUnavailableError(SajuError):
    """외부 만세력 조회 실패 (네트워크/HTTP)"""

    error_code = "CALENDAR_UNAVAILABLE"
    status_code = 503


class UnconfiguredError(SajuError):
    """만세력 데이터 소스가 연결되지 않음"""

    error_code = "UNCONFIGURED"
    status_code = 503


class UnsupportedLookupError(SajuError):
    """데이터 소스가 지원하지 않는 조회"""

    error_code = "UNSUPPORTED_LOOKUP"
    status_code = 501


class InvalidPillarCombination(SajuError):
    """천간/지지 음양 불일치 (60갑자에 없는 조합)"""

    error_code = "INVALID_PILLAR_COMBINATION"
    status_code = 500
