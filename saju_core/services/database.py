"""
━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
SQLite 만세력 저장소
━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
calenda_data 테이블 (1일 1행) 조회
- 양력/음력 날짜, 연월, 간지, 연도 범위
- insert_entries: 만세력 데이터 적재
━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
"""
import logging
import sqlite3
from typing import Iterable, List, Optional

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
)
from saju_core.services.ganji import parse_ganji

logger = logging.getLogger(__name__)

TABLE_NAME = "calenda_data"

COLUMNS = [
    "cd_sy", "cd_sm", "cd_sd",
    "cd_ly", "cd_lm", "cd_ld", "cd_leap_month",
    "cd_hyganjee", "cd_kyganjee",
    "cd_hmganjee", "cd_kmganjee",
    "cd_hdganjee", "cd_kdganjee",
    "cd_hweek", "cd_kweek",
    "cd_stars", "cd_ddi",
    "cd_hterms", "cd_kterms", "cd_terms_time",
    "holiday",
]

# 간지 컬럼 (한자, 한글)
GANJI_COLUMNS = {
    PillarType.YEAR: ("cd_hyganjee", "cd_kyganjee"),
    PillarType.MONTH: ("cd_hmganjee", "cd_kmganjee"),
    PillarType.DAY: ("cd_hdganjee", "cd_kdganjee"),
}

_ORDER_BY = "ORDER BY cd_sy ASC, cd_sm ASC, cd_sd ASC"


class SqliteCalendarRepository(CalendarDataSource):
    """만세력 SQLite 저장소"""

    name = "sqlite"

    def __init__(self, db_path: str = "calendar.db"):
        """
        Args:
            db_path: 데이터베이스 파일 경로
        """
        self.db_path = db_path
        self._init_database()

    def _connect(self) -> sqlite3.Connection:
        try:
            conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as e:
            raise CalendarUnavailableError(f"만세력 DB 연결 실패: {self.db_path}", detail=str(e)) from e
        conn.row_factory = sqlite3.Row
        return conn

    def _init_database(self):
        """테이블 생성"""
        conn = self._connect()
        cursor = conn.cursor()

        cursor.execute(f"""
            CREATE TABLE IF NOT EXISTS {TABLE_NAME} (
                cd_no INTEGER PRIMARY KEY AUTOINCREMENT,

                -- 양력
                cd_sy INTEGER NOT NULL,
                cd_sm INTEGER NOT NULL,
                cd_sd INTEGER NOT NULL,

                -- 음력
                cd_ly INTEGER,
                cd_lm INTEGER,
                cd_ld INTEGER,
                cd_leap_month INTEGER DEFAULT 0,

                -- 년/월/일 간지 (한자, 한글)
                cd_hyganjee TEXT,
                cd_kyganjee TEXT,
                cd_hmganjee TEXT,
                cd_kmganjee TEXT,
                cd_hdganjee TEXT,
                cd_kdganjee TEXT,

                -- 요일, 28수, 띠
                cd_hweek TEXT,
                cd_kweek TEXT,
                cd_stars TEXT,
                cd_ddi TEXT,

                -- 절기 (절입일만)
                cd_hterms TEXT,
                cd_kterms TEXT,
                cd_terms_time TEXT,

                holiday INTEGER DEFAULT 0,

                UNIQUE(cd_sy, cd_sm, cd_sd)
            )
        """)
        cursor.execute(
            f"CREATE INDEX IF NOT EXISTS idx_calenda_ly_lm_ld ON {TABLE_NAME}(cd_ly, cd_lm, cd_ld)"
        )

        conn.commit()
        conn.close()

        logger.info(f"[Database] 초기화 완료: {self.db_path}")

    # ========== 조회 ==========

    def _query(self, sql: str, params: tuple) -> List[AlmanacEntry]:
        conn = self._connect()
        try:
            rows = conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            logger.error(f"[Database] 조회 실패: {e}")
            raise CalendarUnavailableError("만세력 DB 조회 실패", detail=str(e)) from e
        finally:
            conn.close()
        return [self._row_to_entry(row) for row in rows]

    def find_by_solar_date(self, year: int, month: int, day: int) -> Optional[AlmanacEntry]:
        if not in_supported_range(year):
            return None
        rows = self._query(
            f"SELECT * FROM {TABLE_NAME} WHERE cd_sy=? AND cd_sm=? AND cd_sd=?",
            (year, month, day)
        )
        return rows[0] if rows else None

    def find_by_lunar_date(
        self, year: int, month: int, day: int, is_leap_month: bool = False
    ) -> Optional[AlmanacEntry]:
        if not in_supported_range(year):
            return None
        rows = self._query(
            f"SELECT * FROM {TABLE_NAME} "
            f"WHERE cd_ly=? AND cd_lm=? AND cd_ld=? AND cd_leap_month=? {_ORDER_BY} LIMIT 1",
            (year, month, day, 1 if is_leap_month else 0)
        )
        return rows[0] if rows else None

    def find_by_year_month(self, year: int, month: int) -> List[AlmanacEntry]:
        if not in_supported_range(year):
            return []
        return self._query(
            f"SELECT * FROM {TABLE_NAME} WHERE cd_sy=? AND cd_sm=? {_ORDER_BY}",
            (year, month)
        )

    def find_by_ganzhi(
        self, ganzhi: str, pillar_type: PillarType, limit: int = 100
    ) -> List[AlmanacEntry]:
        """간지 (한자/한글/병기 모두 허용)"""
        if limit < 1:
            raise InvalidInputError(f"limit 오류: {limit}")
        try:
            pillar = parse_ganji(ganzhi)
        except MalformedUpstreamDataError as e:
            raise InvalidInputError(e.message, detail=e.detail) from e
        hanja_col, korean_col = GANJI_COLUMNS[PillarType(pillar_type)]
        return self._query(
            f"SELECT * FROM {TABLE_NAME} WHERE ({hanja_col}=? OR {korean_col}=?) "
            f"AND cd_sy BETWEEN 1900 AND 2100 {_ORDER_BY} LIMIT ?",
            (pillar.hanja, pillar.ganji, limit)
        )

    def find_by_year_range(self, start_year: int, end_year: int) -> List[AlmanacEntry]:
        if end_year < start_year:
            raise InvalidInputError(f"연도 범위 오류: {start_year} > {end_year}")
        lo, hi = max(start_year, 1900), min(end_year, 2100)
        if lo > hi:
            return []
        return self._query(
            f"SELECT * FROM {TABLE_NAME} WHERE cd_sy BETWEEN ? AND ? {_ORDER_BY}",
            (lo, hi)
        )

    # ========== 적재 ==========

    def insert_entries(self, entries: Iterable[AlmanacEntry]) -> int:
        """
        만세력 행 적재 (같은 양력 날짜는 덮어씀)

        Returns:
            적재한 행 수
        """
        placeholders = ", ".join("?" for _ in COLUMNS)
        sql = f"INSERT OR REPLACE INTO {TABLE_NAME} ({', '.join(COLUMNS)}) VALUES ({placeholders})"
        rows = [self._entry_to_row(e) for e in entries]

        conn = self._connect()
        try:
            conn.executemany(sql, rows)
            conn.commit()
        finally:
            conn.close()

        logger.info(f"[Database] 만세력 {len(rows)}행 적재")
        return len(rows)

    def count(self) -> int:
        conn = self._connect()
        try:
            return conn.execute(f"SELECT COUNT(*) FROM {TABLE_NAME}").fetchone()[0]
        finally:
            conn.close()

    # ========== 변환 ==========

    @staticmethod
    def _row_to_entry(row: sqlite3.Row) -> AlmanacEntry:
        return AlmanacEntry(
            solar_year=row["cd_sy"],
            solar_month=row["cd_sm"],
            solar_day=row["cd_sd"],
            lunar_year=row["cd_ly"],
            lunar_month=row["cd_lm"],
            lunar_day=row["cd_ld"],
            is_leap_month=bool(row["cd_leap_month"]),
            year_ganji=row["cd_kyganjee"] or "",
            month_ganji=row["cd_kmganjee"] or "",
            day_ganji=row["cd_kdganjee"] or "",
            year_ganji_hanja=row["cd_hyganjee"] or "",
            month_ganji_hanja=row["cd_hmganjee"] or "",
            day_ganji_hanja=row["cd_hdganjee"] or "",
            weekday=row["cd_kweek"],
            weekday_hanja=row["cd_hweek"],
            constellation=row["cd_stars"],
            zodiac=row["cd_ddi"],
            solar_term=row["cd_kterms"],
            solar_term_hanja=row["cd_hterms"],
            solar_term_time=row["cd_terms_time"],
            is_holiday=bool(row["holiday"]),
        )

    @staticmethod
    def _entry_to_row(entry: AlmanacEntry) -> tuple:
        return (
            entry.solar_year, entry.solar_month, entry.solar_day,
            entry.lunar_year, entry.lunar_month, entry.lunar_day, int(entry.is_leap_month),
            entry.year_ganji_hanja, entry.year_ganji,
            entry.month_ganji_hanja, entry.month_ganji,
            entry.day_ganji_hanja, entry.day_ganji,
            entry.weekday_hanja, entry.weekday,
            entry.constellation, entry.zodiac,
            entry.solar_term_hanja, entry.solar_term, entry.solar_term_time,
            int(entry.is_holiday),
        )
