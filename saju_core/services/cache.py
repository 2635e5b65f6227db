"""
만세력 조회 캐시
- CalendarDataSource 를 감싸는 호출자 측 캐시 (엔진은 캐시/재시도 하지 않음)
- 메모리 기반 TTLCache, 날짜별 간지는 고정값이라 TTL 24시간
- 실패(예외)는 캐시하지 않음, 빈 결과는 캐시
- 캐시/통계 접근은 Lock 으로 보호 (threadpool 동시 호출)
"""
from typing import Any, Callable, List, Optional
from cachetools import TTLCache
import hashlib
import json
import logging
import threading

from saju_core.services.calendar_source import AlmanacEntry, CalendarDataSource, PillarType

logger = logging.getLogger(__name__)

_MISSING = object()


class CachedCalendarSource(CalendarDataSource):
    """
    만세력 조회 결과 캐싱

    캐시 키: (조회 종류, 인자...) → md5
    """

    def __init__(self, source: CalendarDataSource, maxsize: int = 10000, ttl: int = 86400):
        self.source = source
        self.name = f"cached:{source.name}"
        self.cache = TTLCache(maxsize=maxsize, ttl=ttl)
        self._lock = threading.Lock()

        # 통계
        self._hits = 0
        self._misses = 0

    def _make_key(self, *args) -> str:
        """캐시 키 생성"""
        key_str = json.dumps(args, sort_keys=True, ensure_ascii=False)
        return hashlib.md5(key_str.encode()).hexdigest()

    def _cached(self, key_parts: tuple, loader: Callable[[], Any]) -> Any:
        key = self._make_key(*key_parts)
        with self._lock:
            value = self.cache.get(key, _MISSING)
            if value is not _MISSING:
                self._hits += 1
                return value
            self._misses += 1

        # 소스 조회는 Lock 밖에서
        value = loader()
        with self._lock:
            self.cache[key] = value
        return value

    # ========== 조회 ==========

    def find_by_solar_date(self, year: int, month: int, day: int) -> Optional[AlmanacEntry]:
        return self._cached(
            ("solar", year, month, day),
            lambda: self.source.find_by_solar_date(year, month, day)
        )

    def find_by_lunar_date(
        self, year: int, month: int, day: int, is_leap_month: bool = False
    ) -> Optional[AlmanacEntry]:
        return self._cached(
            ("lunar", year, month, day, bool(is_leap_month)),
            lambda: self.source.find_by_lunar_date(year, month, day, is_leap_month)
        )

    def find_by_year_month(self, year: int, month: int) -> List[AlmanacEntry]:
        return self._cached(
            ("year_month", year, month),
            lambda: self.source.find_by_year_month(year, month)
        )

    def find_by_ganzhi(
        self, ganzhi: str, pillar_type: PillarType, limit: int = 100
    ) -> List[AlmanacEntry]:
        return self._cached(
            ("ganzhi", ganzhi, PillarType(pillar_type).value, limit),
            lambda: self.source.find_by_ganzhi(ganzhi, pillar_type, limit)
        )

    def find_by_year_range(self, start_year: int, end_year: int) -> List[AlmanacEntry]:
        # 범위 조회는 크기가 커서 캐시하지 않음
        return self.source.find_by_year_range(start_year, end_year)

    # ========== 통계 ==========

    def get_stats(self) -> dict:
        """캐시 통계 조회"""
        with self._lock:
            hits, misses, size = self._hits, self._misses, len(self.cache)
        total = hits + misses
        hit_rate = (hits / total * 100) if total > 0 else 0

        return {
            "source": self.source.name,
            "hits": hits,
            "misses": misses,
            "hit_rate": f"{hit_rate:.1f}%",
            "size": size,
            "maxsize": self.cache.maxsize,
        }

    def clear(self):
        """캐시 초기화"""
        with self._lock:
            self.cache.clear()
            self._hits = 0
            self._misses = 0
        logger.info("[Cache] 만세력 캐시 초기화")
