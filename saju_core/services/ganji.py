"""
60갑자 계산 모듈
- 천간(10개) × 지지(12개) 중 음양이 같은 60개 조합 = 60갑자
- 기준점(epoch)을 가진 60갑자 순환 (연/일/세운)
- JDN(율리우스 적일) 기반 일주
- 연두법(월간 계산), 시두법(시간 계산)
- 야자시(23시 이후) 날짜 보정
"""
import re
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum, IntEnum
from typing import Dict, List, Optional, Tuple

from saju_core.services.errors import (
    InvalidInputError,
    InvalidPillarCombination,
    MalformedUpstreamDataError,
)

# 천간 (10개)
CHEONGAN = ["갑", "을", "병", "정", "무", "기", "경", "신", "임", "계"]
CHEONGAN_HANJA = ["甲", "乙", "丙", "丁", "戊", "己", "庚", "辛", "壬", "癸"]

# 지지 (12개)
JIJI = ["자", "축", "인", "묘", "진", "사", "오", "미", "신", "유", "술", "해"]
JIJI_HANJA = ["子", "丑", "寅", "卯", "辰", "巳", "午", "未", "申", "酉", "戌", "亥"]

# 띠
JIJI_ANIMAL = ["쥐", "소", "호랑이", "토끼", "용", "뱀", "말", "양", "원숭이", "닭", "개", "돼지"]

# 천간-오행 매핑
GAN_TO_ELEMENT = {
    "갑": "목", "을": "목",
    "병": "화", "정": "화",
    "무": "토", "기": "토",
    "경": "금", "신": "금",
    "임": "수", "계": "수"
}

# 지지-오행 매핑
JI_TO_ELEMENT = {
    "자": "수", "축": "토", "인": "목", "묘": "목",
    "진": "토", "사": "화", "오": "화", "미": "토",
    "신": "금", "유": "금", "술": "토", "해": "수"
}

# 일간 설명
DAY_MASTER_DESC = {
    "갑": "큰 나무(甲木) - 곧고 뻗어나가는 성장의 기운",
    "을": "작은 나무(乙木) - 유연하고 적응력 있는 기운",
    "병": "태양(丙火) - 밝고 뜨거운 열정의 기운",
    "정": "촛불(丁火) - 따뜻하고 은은한 빛의 기운",
    "무": "큰 산(戊土) - 안정적이고 묵직한 기운",
    "기": "논밭(己土) - 포용하고 키워내는 기운",
    "경": "바위/쇠(庚金) - 강하고 결단력 있는 기운",
    "신": "보석(辛金) - 섬세하고 빛나는 기운",
    "임": "큰 물(壬水) - 넓고 깊은 지혜의 기운",
    "계": "이슬/비(癸水) - 촉촉하고 스며드는 기운"
}

# 지지 설명
BRANCH_DESC = {
    "자": "사교적이고 민감함",
    "축": "인내심 강하고 현실적임",
    "인": "열정적이고 추진력 있음",
    "묘": "섬세하고 감성적",
    "진": "의욕적이고 강직함",
    "사": "감각적이고 화려함",
    "오": "낙천적이고 추진력",
    "미": "온화하고 타인 배려",
    "신": "분석력 뛰어나고 명확",
    "유": "지적이고 깔끔함",
    "술": "보수적이고 책임감",
    "해": "직관적이고 상상력 풍부"
}

ELEMENT_HANJA = {"목": "木", "화": "火", "토": "土", "금": "金", "수": "水"}


class Element(str, Enum):
    """오행"""
    WOOD = "목"
    FIRE = "화"
    EARTH = "토"
    METAL = "금"
    WATER = "수"

    @property
    def hanja(self) -> str:
        return ELEMENT_HANJA[self.value]


class HeavenlyStem(IntEnum):
    """천간 (값 = 인덱스, 짝수 = 양)"""
    GAP = 0
    EUL = 1
    BYEONG = 2
    JEONG = 3
    MU = 4
    GI = 5
    GYEONG = 6
    SIN = 7
    IM = 8
    GYE = 9

    @property
    def korean(self) -> str:
        return CHEONGAN[self.value]

    @property
    def hanja(self) -> str:
        return CHEONGAN_HANJA[self.value]

    @property
    def element(self) -> Element:
        return Element(GAN_TO_ELEMENT[self.korean])

    @property
    def is_yang(self) -> bool:
        return self.value % 2 == 0

    @property
    def yin_yang(self) -> str:
        return "양" if self.is_yang else "음"

    @property
    def description(self) -> str:
        return DAY_MASTER_DESC[self.korean]

    @classmethod
    def from_char(cls, ch: str) -> "HeavenlyStem":
        """한글/한자 한 글자 → 천간"""
        if ch in CHEONGAN:
            return cls(CHEONGAN.index(ch))
        if ch in CHEONGAN_HANJA:
            return cls(CHEONGAN_HANJA.index(ch))
        raise InvalidInputError(f"천간이 아닙니다: {ch!r}")


class EarthlyBranch(IntEnum):
    """지지 (값 = 인덱스, 짝수 = 양)"""
    JA = 0
    CHUK = 1
    IN = 2
    MYO = 3
    JIN = 4
    SA = 5
    O = 6
    MI = 7
    SHIN = 8
    YU = 9
    SUL = 10
    HAE = 11

    @property
    def korean(self) -> str:
        return JIJI[self.value]

    @property
    def hanja(self) -> str:
        return JIJI_HANJA[self.value]

    @property
    def element(self) -> Element:
        return Element(JI_TO_ELEMENT[self.korean])

    @property
    def is_yang(self) -> bool:
        return self.value % 2 == 0

    @property
    def yin_yang(self) -> str:
        return "양" if self.is_yang else "음"

    @property
    def animal(self) -> str:
        return JIJI_ANIMAL[self.value]

    @property
    def description(self) -> str:
        return BRANCH_DESC[self.korean]

    @property
    def triad(self) -> str:
        """삼합 그룹 이름 (예: 신자진)"""
        for name, members in SAMHAP_GROUPS.items():
            if self in members:
                return name
        raise AssertionError(f"삼합 그룹 누락: {self.korean}")

    @property
    def triad_anchor(self) -> "EarthlyBranch":
        """삼합 그룹의 장성(將星) 지지"""
        return SAMHAP_ANCHOR[self.triad]

    @classmethod
    def from_char(cls, ch: str) -> "EarthlyBranch":
        """한글/한자 한 글자 → 지지"""
        if ch in JIJI:
            return cls(JIJI.index(ch))
        if ch in JIJI_HANJA:
            return cls(JIJI_HANJA.index(ch))
        raise InvalidInputError(f"지지가 아닙니다: {ch!r}")


# 삼합(三合) 그룹
SAMHAP_GROUPS: Dict[str, Tuple[EarthlyBranch, ...]] = {
    "신자진": (EarthlyBranch.SHIN, EarthlyBranch.JA, EarthlyBranch.JIN),
    "해묘미": (EarthlyBranch.HAE, EarthlyBranch.MYO, EarthlyBranch.MI),
    "인오술": (EarthlyBranch.IN, EarthlyBranch.O, EarthlyBranch.SUL),
    "사유축": (EarthlyBranch.SA, EarthlyBranch.YU, EarthlyBranch.CHUK),
}

# 삼합 그룹 → 장성살 지지 (왕지)
SAMHAP_ANCHOR: Dict[str, EarthlyBranch] = {
    "신자진": EarthlyBranch.JA,
    "해묘미": EarthlyBranch.MYO,
    "인오술": EarthlyBranch.O,
    "사유축": EarthlyBranch.YU,
}


@dataclass(frozen=True)
class Pillar:
    """사주 기둥 (천간 + 지지), 60갑자 중 하나"""
    stem: HeavenlyStem
    branch: EarthlyBranch

    def __post_init__(self):
        stem = HeavenlyStem(self.stem)
        branch = EarthlyBranch(self.branch)
        if stem.value % 2 != branch.value % 2:
            raise InvalidPillarCombination(
                f"60갑자에 없는 조합: {stem.korean}{branch.korean}",
                detail=f"stem_index={stem.value}, branch_index={branch.value}"
            )
        object.__setattr__(self, "stem", stem)
        object.__setattr__(self, "branch", branch)

    @property
    def ganji(self) -> str:
        return f"{self.stem.korean}{self.branch.korean}"

    @property
    def hanja(self) -> str:
        return f"{self.stem.hanja}{self.branch.hanja}"

    @property
    def label(self) -> str:
        return f"{self.ganji}({self.hanja})"

    @property
    def index(self) -> int:
        """갑자=0 기준 60갑자 순번"""
        return GAPJA_CYCLE.offset_from_pillar(self)

    @property
    def stem_element(self) -> Element:
        return self.stem.element

    @property
    def branch_element(self) -> Element:
        return self.branch.element

    @classmethod
    def from_index(cls, index: int) -> "Pillar":
        return GAPJA_CYCLE.pillar_from_offset(index)

    @classmethod
    def parse(cls, text: str) -> "Pillar":
        return parse_ganji(text)

    def to_dict(self) -> Dict[str, object]:
        return {
            "gan": self.stem.korean,
            "ji": self.branch.korean,
            "ganji": self.ganji,
            "hanja": self.hanja,
            "gan_element": self.stem.element.value,
            "ji_element": self.branch.element.value,
            "gan_index": self.stem.value,
            "ji_index": self.branch.value,
        }

    def __str__(self) -> str:
        return self.ganji


class SexagenaryCycle:
    """
    기준점이 있는 60갑자 순환

    Args:
        base_stem: offset 0 의 천간
        base_branch: offset 0 의 지지
        origin: offset 0 에 해당하는 값 (연도, JDN 등)
    """

    def __init__(
        self,
        base_stem: HeavenlyStem = HeavenlyStem.GAP,
        base_branch: EarthlyBranch = EarthlyBranch.JA,
        origin: int = 0
    ):
        # 기준 간지 자체도 유효해야 함
        self.anchor = Pillar(base_stem, base_branch)
        self.base_stem = self.anchor.stem
        self.base_branch = self.anchor.branch
        self.origin = origin

    def pillar_from_offset(self, offset: int) -> Pillar:
        """기준점에서 offset 만큼 떨어진 간지 (음수 가능)"""
        stem_idx = (self.base_stem + offset) % 10
        branch_idx = (self.base_branch + offset) % 12
        return Pillar(HeavenlyStem(stem_idx), EarthlyBranch(branch_idx))

    def offset_from_indices(self, stem_idx: int, branch_idx: int) -> int:
        """(천간, 지지) 인덱스 → 0..59 offset"""
        ds = (stem_idx - self.base_stem) % 10
        db = (branch_idx - self.base_branch) % 12
        if ds % 2 != db % 2:
            raise InvalidPillarCombination(
                "천간/지지 음양 불일치",
                detail=f"stem_index={stem_idx}, branch_index={branch_idx}"
            )
        # n ≡ ds (mod 10), n ≡ db (mod 12)
        return (6 * ds - 5 * db) % 60

    def offset_from_pillar(self, pillar: Pillar) -> int:
        return self.offset_from_indices(pillar.stem, pillar.branch)

    def pillar_at(self, value: int) -> Pillar:
        """기준값(origin) 대비 value 의 간지"""
        return self.pillar_from_offset(value - self.origin)


# ===== JDN =====

def jdn(year: int, month: int, day: int) -> int:
    """율리우스 적일 (proleptic Gregorian, 정수 연산)"""
    a = (14 - month) // 12
    y = year + 4800 - a
    m = month + 12 * a - 3
    return day + (153 * m + 2) // 5 + 365 * y + y // 4 - y // 100 + y // 400 - 32045


# 1999-12-14 = 경자일
DAY_ANCHOR_JDN = jdn(1999, 12, 14)

GAPJA_CYCLE = SexagenaryCycle()
YEAR_CYCLE = SexagenaryCycle(origin=1984)  # 1984 = 갑자년
DAY_CYCLE = SexagenaryCycle(HeavenlyStem.GYEONG, EarthlyBranch.JA, origin=DAY_ANCHOR_JDN)
SAEUN_CYCLE = SexagenaryCycle(HeavenlyStem.GYEONG, EarthlyBranch.JA, origin=1900)  # 1900 = 경자년

SIXTY_GANJI: List[str] = [GAPJA_CYCLE.pillar_from_offset(i).ganji for i in range(60)]


# ===== 야자시 =====

def next_day(year: int, month: int, day: int) -> Tuple[int, int, int]:
    d = date(year, month, day) + timedelta(days=1)
    return d.year, d.month, d.day


def apply_night_zi(year: int, month: int, day: int, hour: int) -> Tuple[int, int, int]:
    """23시 이후 출생은 다음 날로 보정 (일주/시주 계산용)"""
    if hour >= 23:
        return next_day(year, month, day)
    return year, month, day


# ===== 간지 문자열 =====

_HANGUL_GANJI = re.compile(r"[갑을병정무기경신임계][자축인묘진사오미신유술해]")
_HANJA_GANJI = re.compile(r"[甲乙丙丁戊己庚辛壬癸][子丑寅卯辰巳午未申酉戌亥]")


def normalize_ganji(text: Optional[str]) -> str:
    """
    간지 문자열 정규화
    - 공백, zero-width space, BOM, NBSP 제거
    - '무인(戊寅)' 형태는 그대로 두고 parse_ganji 에서 추출
    """
    if not text:
        return ""
    s = str(text)
    s = s.replace("\u200b", "").replace("\ufeff", "").replace("\xa0", "")
    return re.sub(r"\s+", "", s)


def parse_ganji(text: Optional[str]) -> Pillar:
    """
    간지 문자열 → Pillar
    - '갑자', '甲子', '갑자(甲子)', '甲子(갑자)' 모두 허용
    - 해석 불가 / 음양 불일치는 MalformedUpstreamDataError
    """
    s = normalize_ganji(text)
    match = _HANGUL_GANJI.search(s)
    if match:
        stem_idx = CHEONGAN.index(match.group(0)[0])
        branch_idx = JIJI.index(match.group(0)[1])
    else:
        match = _HANJA_GANJI.search(s)
        if not match:
            raise MalformedUpstreamDataError(f"간지 해석 불가: {text!r}")
        stem_idx = CHEONGAN_HANJA.index(match.group(0)[0])
        branch_idx = JIJI_HANJA.index(match.group(0)[1])

    try:
        return Pillar(HeavenlyStem(stem_idx), EarthlyBranch(branch_idx))
    except InvalidPillarCombination as e:
        raise MalformedUpstreamDataError(f"60갑자에 없는 간지: {text!r}", detail=e.message) from e


# ===== 시간 구간 =====

HOUR_RANGES = [
    ("23:00", "00:59"),  # 자
    ("01:00", "02:59"),  # 축
    ("03:00", "04:59"),  # 인
    ("05:00", "06:59"),  # 묘
    ("07:00", "08:59"),  # 진
    ("09:00", "10:59"),  # 사
    ("11:00", "12:59"),  # 오
    ("13:00", "14:59"),  # 미
    ("15:00", "16:59"),  # 신
    ("17:00", "18:59"),  # 유
    ("19:00", "20:59"),  # 술
    ("21:00", "22:59"),  # 해
]

# 월지: 인월(0) ~ 축월(11)
MONTH_BRANCHES = [
    EarthlyBranch.IN, EarthlyBranch.MYO, EarthlyBranch.JIN, EarthlyBranch.SA,
    EarthlyBranch.O, EarthlyBranch.MI, EarthlyBranch.SHIN, EarthlyBranch.YU,
    EarthlyBranch.SUL, EarthlyBranch.HAE, EarthlyBranch.JA, EarthlyBranch.CHUK,
]


class GanjiCalculator:
    """60갑자 계산기"""

    # ===== 연주 계산 =====
    @staticmethod
    def calc_year_ganji(saju_year: int) -> Pillar:
        """
        연주 계산 (입춘 보정된 연도 기준)

        Args:
            saju_year: 입춘 보정된 연도 (solar_terms에서 계산)
        """
        return YEAR_CYCLE.pillar_at(saju_year)

    # ===== 월주 계산 =====
    @staticmethod
    def calc_month_ganji(year_stem: HeavenlyStem, saju_month: int) -> Pillar:
        """
        월주 계산 (연두법)

        Args:
            year_stem: 연간
            saju_month: 절기 기준 월 인덱스 (0=인, 1=묘, ..., 11=축)

        연두법 공식:
        - 갑/기년: 인월 천간 = 병(2)
        - 을/경년: 인월 천간 = 무(4)
        - 병/신년: 인월 천간 = 경(6)
        - 정/임년: 인월 천간 = 임(8)
        - 무/계년: 인월 천간 = 갑(0)
        """
        if not 0 <= saju_month <= 11:
            raise InvalidInputError(f"월 인덱스 범위 오류: {saju_month}")

        # 연간 → 인월 천간 시작점
        year_to_month_start = {
            0: 2,  # 갑 → 병인월
            1: 4,  # 을 → 무인월
            2: 6,  # 병 → 경인월
            3: 8,  # 정 → 임인월
            4: 0,  # 무 → 갑인월
            5: 2,  # 기 → 병인월
            6: 4,  # 경 → 무인월
            7: 6,  # 신 → 경인월
            8: 8,  # 임 → 임인월
            9: 0,  # 계 → 갑인월
        }

        start_gan_idx = year_to_month_start[int(year_stem)]
        month_gan_idx = (start_gan_idx + saju_month) % 10
        return Pillar(HeavenlyStem(month_gan_idx), MONTH_BRANCHES[saju_month])

    # ===== 일주 계산 =====
    @staticmethod
    def calc_day_ganji(year: int, month: int, day: int) -> Pillar:
        """
        일주 계산

        기준일: 1999년 12월 14일 = 경자일
        offset = JDN(대상일) - JDN(기준일)
        """
        return DAY_CYCLE.pillar_at(jdn(year, month, day))

    # ===== 시주 계산 =====
    @staticmethod
    def calc_hour_ganji(day_stem: HeavenlyStem, hour: int) -> Pillar:
        """
        시주 계산

        시간 → 지지 매핑 (2시간 단위, 子시 = 23:00~00:59)
        시간 천간: 일간 기준 자시 천간 + 지지 index

        Args:
            day_stem: 일간 (야자시 보정된 날짜 기준)
            hour: 시 (0-23)
        """
        hour_ji_idx = GanjiCalculator.get_hour_ji_index(hour)

        # 일간 → 자시 천간 시작점
        day_to_hour_start = {
            0: 0,  # 갑일 → 갑자시
            1: 2,  # 을일 → 병자시
            2: 4,  # 병일 → 무자시
            3: 6,  # 정일 → 경자시
            4: 8,  # 무일 → 임자시
            5: 0,  # 기일 → 갑자시
            6: 2,  # 경일 → 병자시
            7: 4,  # 신일 → 무자시
            8: 6,  # 임일 → 경자시
            9: 8,  # 계일 → 임자시
        }

        start_gan_idx = day_to_hour_start[int(day_stem)]
        hour_gan_idx = (start_gan_idx + hour_ji_idx) % 10
        return Pillar(HeavenlyStem(hour_gan_idx), EarthlyBranch(hour_ji_idx))

    @staticmethod
    def get_hour_ji_index(hour: int) -> int:
        """시간 → 지지 인덱스"""
        if not 0 <= hour <= 23:
            raise InvalidInputError(f"시간 범위 오류: {hour}")
        if hour == 23:
            return 0
        return (hour + 1) // 2

    @staticmethod
    def get_hour_range(ji_idx: int) -> Tuple[str, str]:
        """지지 인덱스 → 시간 범위 문자열"""
        return HOUR_RANGES[ji_idx]


def hour_options() -> List[Dict[str, object]]:
    """출생 시간 선택 옵션 (2시간 단위 12개)"""
    options = []
    for idx, (start, end) in enumerate(HOUR_RANGES):
        options.append({
            "index": idx,
            "ji": JIJI[idx],
            "ji_hanja": JIJI_HANJA[idx],
            "range_start": start,
            "range_end": end,
            "label": f"{JIJI_HANJA[idx]}시 ({JIJI[idx]}시) - {start}~{end}",
        })
    return options


# 싱글톤
ganji_calc = GanjiCalculator()
