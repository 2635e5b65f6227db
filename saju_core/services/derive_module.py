"""
━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
2️⃣ DERIVE 모듈 - 사주 파생 분석
━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
FourPillars → 십성, 지장간, 12운성, 12신살, 오행/음양 분포
모두 조회표 기반 순수 함수 (FourPillars 는 변경하지 않음)
━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
"""
import logging
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Tuple, Union

from saju_core.services.calc_module import FourPillars
from saju_core.services.ganji import EarthlyBranch, Element, HeavenlyStem

logger = logging.getLogger(__name__)

S = HeavenlyStem
B = EarthlyBranch


# 오행 상생상극 관계
ELEMENT_CYCLE = {
    "목": {"generates": "화", "conquers": "토", "conquered_by": "금", "generated_by": "수"},
    "화": {"generates": "토", "conquers": "금", "conquered_by": "수", "generated_by": "목"},
    "토": {"generates": "금", "conquers": "수", "conquered_by": "목", "generated_by": "화"},
    "금": {"generates": "수", "conquers": "목", "conquered_by": "화", "generated_by": "토"},
    "수": {"generates": "목", "conquers": "화", "conquered_by": "토", "generated_by": "금"},
}


class TenStar(str, Enum):
    """십성(十星)"""
    BIGYEON = "비견"
    GEOBJAE = "겁재"
    SIKSIN = "식신"
    SANGGWAN = "상관"
    PYEONJAE = "편재"
    JEONGJAE = "정재"
    PYEONGWAN = "편관"
    JEONGGWAN = "정관"
    PYEONIN = "편인"
    JEONGIN = "정인"

    @property
    def hanja(self) -> str:
        return TEN_STAR_HANJA[self]

    @property
    def meaning(self) -> str:
        return TEN_STAR_MEANINGS[self]


# 십성(十星) 관계 - 일간 기준
TEN_GODS_RELATION = {
    # 나와 같은 오행
    "same": {"me_same_yin_yang": TenStar.BIGYEON, "me_diff_yin_yang": TenStar.GEOBJAE},
    # 내가 생하는 오행
    "i_generate": {"me_same_yin_yang": TenStar.SIKSIN, "me_diff_yin_yang": TenStar.SANGGWAN},
    # 내가 극하는 오행
    "i_conquer": {"me_same_yin_yang": TenStar.PYEONJAE, "me_diff_yin_yang": TenStar.JEONGJAE},
    # 나를 극하는 오행
    "conquers_me": {"me_same_yin_yang": TenStar.PYEONGWAN, "me_diff_yin_yang": TenStar.JEONGGWAN},
    # 나를 생하는 오행
    "generates_me": {"me_same_yin_yang": TenStar.PYEONIN, "me_diff_yin_yang": TenStar.JEONGIN},
}

TEN_STAR_HANJA = {
    TenStar.BIGYEON: "比肩", TenStar.GEOBJAE: "劫財",
    TenStar.SIKSIN: "食神", TenStar.SANGGWAN: "傷官",
    TenStar.PYEONJAE: "偏財", TenStar.JEONGJAE: "正財",
    TenStar.PYEONGWAN: "偏官", TenStar.JEONGGWAN: "正官",
    TenStar.PYEONIN: "偏印", TenStar.JEONGIN: "正印",
}

TEN_STAR_MEANINGS = {
    TenStar.BIGYEON: "형제, 친구, 동료, 경쟁자",
    TenStar.GEOBJAE: "형제자매, 동업자, 라이벌",
    TenStar.SIKSIN: "말, 표현, 재능, 자식",
    TenStar.SANGGWAN: "기술, 예술, 반항, 자유",
    TenStar.PYEONJAE: "유동재산, 사업, 투자",
    TenStar.JEONGJAE: "고정재산, 아내, 안정",
    TenStar.PYEONGWAN: "압박, 도전, 권위, 남편",
    TenStar.JEONGGWAN: "명예, 지위, 직업, 남편",
    TenStar.PYEONIN: "편모, 계모, 종교, 학문",
    TenStar.JEONGIN: "어머니, 학업, 명예, 후원",
}

# 지지 → 정기(본기) 천간
BRANCH_MAIN_STEM = {
    B.JA: S.GYE, B.CHUK: S.GI, B.IN: S.GAP, B.MYO: S.EUL,
    B.JIN: S.MU, B.SA: S.BYEONG, B.O: S.JEONG, B.MI: S.GI,
    B.SHIN: S.GYEONG, B.YU: S.SIN, B.SUL: S.MU, B.HAE: S.IM,
}


def element_relation(day_element: Element, target_element: Element) -> str:
    """일간 오행 기준 대상 오행과의 관계"""
    day = Element(day_element).value
    target = Element(target_element).value
    cycle = ELEMENT_CYCLE[day]
    if target == day:
        return "same"
    if target == cycle["generates"]:
        return "i_generate"
    if target == cycle["conquers"]:
        return "i_conquer"
    if target == cycle["conquered_by"]:
        return "conquers_me"
    return "generates_me"


def ten_star(day_stem: HeavenlyStem, target: Union[HeavenlyStem, EarthlyBranch]) -> TenStar:
    """
    십성 판정

    Args:
        day_stem: 일간
        target: 천간 또는 지지 (지지는 정기 천간으로 환산)
    """
    if isinstance(target, EarthlyBranch):
        target = BRANCH_MAIN_STEM[target]
    relation = element_relation(day_stem.element, target.element)
    key = "me_same_yin_yang" if day_stem.is_yang == target.is_yang else "me_diff_yin_yang"
    return TEN_GODS_RELATION[relation][key]


# ===== 지장간 =====

class BranchCategory(str, Enum):
    GROWTH = "growth"     # 생지 (인신사해)
    PEAK = "peak"         # 왕지 (자오묘유)
    STORAGE = "storage"   # 고지 (진술축미)


HIDDEN_STEM_ROLES = ("residual", "middle", "main")  # 여기, 중기, 정기

CATEGORY_DAYS = {
    BranchCategory.GROWTH: (7, 7, 16),
    BranchCategory.PEAK: (10, None, 20),
    BranchCategory.STORAGE: (9, 3, 18),
}

# (여기, 중기, 정기), 중기 없는 왕지는 None
HIDDEN_STEMS_TABLE = {
    B.IN: (BranchCategory.GROWTH, (S.MU, S.BYEONG, S.GAP)),
    B.SHIN: (BranchCategory.GROWTH, (S.MU, S.IM, S.GYEONG)),
    B.SA: (BranchCategory.GROWTH, (S.MU, S.GYEONG, S.BYEONG)),
    B.HAE: (BranchCategory.GROWTH, (S.MU, S.GAP, S.IM)),
    B.JA: (BranchCategory.PEAK, (S.IM, None, S.GYE)),
    B.O: (BranchCategory.PEAK, (S.BYEONG, None, S.JEONG)),
    B.MYO: (BranchCategory.PEAK, (S.GAP, None, S.EUL)),
    B.YU: (BranchCategory.PEAK, (S.GYEONG, None, S.SIN)),
    B.JIN: (BranchCategory.STORAGE, (S.EUL, S.GYE, S.MU)),
    B.SUL: (BranchCategory.STORAGE, (S.SIN, S.JEONG, S.MU)),
    B.CHUK: (BranchCategory.STORAGE, (S.GYE, S.SIN, S.GI)),
    B.MI: (BranchCategory.STORAGE, (S.JEONG, S.EUL, S.GI)),
}


@dataclass(frozen=True)
class HiddenStem:
    stem: HeavenlyStem
    role: str       # residual | middle | main
    days: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stem": self.stem.korean,
            "hanja": self.stem.hanja,
            "element": self.stem.element.value,
            "role": self.role,
            "days": self.days,
        }


@dataclass(frozen=True)
class HiddenStemComposition:
    branch: EarthlyBranch
    category: BranchCategory
    stems: Tuple[HiddenStem, ...]

    @property
    def main(self) -> HiddenStem:
        return self.stems[-1]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "branch": self.branch.korean,
            "category": self.category.value,
            "stems": [s.to_dict() for s in self.stems],
        }


def hidden_stems(branch: EarthlyBranch) -> HiddenStemComposition:
    """지장간 (여기 → 중기 → 정기)"""
    category, stems = HIDDEN_STEMS_TABLE[EarthlyBranch(branch)]
    entries = tuple(
        HiddenStem(stem=stem, role=role, days=days)
        for stem, role, days in zip(stems, HIDDEN_STEM_ROLES, CATEGORY_DAYS[category])
        if stem is not None
    )
    return HiddenStemComposition(branch=EarthlyBranch(branch), category=category, stems=entries)


# ===== 12운성 =====

class LifeStage(str, Enum):
    """12운성"""
    JANGSAENG = "장생"
    MOGYOK = "목욕"
    GWANDAE = "관대"
    IMGWAN = "임관"
    JEWANG = "제왕"
    SOE = "쇠"
    BYEONG = "병"
    SA = "사"
    MYO = "묘"
    JEOL = "절"
    TAE = "태"
    YANG = "양"

    @property
    def meaning(self) -> str:
        return LIFE_STAGE_MEANINGS[self]


LIFE_STAGE_ORDER = list(LifeStage)

LIFE_STAGE_MEANINGS = {
    LifeStage.JANGSAENG: "새로운 시작, 희망, 성장 가능성",
    LifeStage.MOGYOK: "정화, 변화, 불안정",
    LifeStage.GWANDAE: "성장, 학습, 발전",
    LifeStage.IMGWAN: "건강, 성숙, 능력 발휘",
    LifeStage.JEWANG: "절정, 권력, 최고조",
    LifeStage.SOE: "쇠퇴 시작, 조심",
    LifeStage.BYEONG: "병약, 어려움, 시련",
    LifeStage.SA: "정지, 막힘, 죽음",
    LifeStage.MYO: "저장, 잠재력, 무덤",
    LifeStage.JEOL: "절멸, 끝, 소멸",
    LifeStage.TAE: "잉태, 새 생명, 준비",
    LifeStage.YANG: "양육, 보호, 성장",
}

# 일간별 장생 지지 (양간 순행, 음간 역행)
JANGSAENG_BRANCH = {
    S.GAP: B.HAE, S.BYEONG: B.IN, S.MU: B.IN, S.GYEONG: B.SA, S.IM: B.SHIN,
    S.EUL: B.O, S.JEONG: B.YU, S.GI: B.YU, S.SIN: B.JA, S.GYE: B.MYO,
}


def life_stage(day_stem: HeavenlyStem, branch: EarthlyBranch) -> LifeStage:
    """12운성"""
    start = JANGSAENG_BRANCH[HeavenlyStem(day_stem)]
    if day_stem.is_yang:
        k = (branch - start) % 12
    else:
        k = (start - branch) % 12
    return LIFE_STAGE_ORDER[k]


# ===== 12신살 =====

class Sinsal(str, Enum):
    """12신살"""
    JANGSEONGSAL = "장성살"
    BANANSAL = "반안살"
    YEOKMASAL = "역마살"
    YUKHAESAL = "육해살"
    HWAGAESAL = "화개살"
    GEOBSAL = "겁살"
    JAESAL = "재살"
    CHEONSAL = "천살"
    JISAL = "지살"
    NYEONSAL = "년살"
    WOLSAL = "월살"
    MANGSINSAL = "망신살"

    @property
    def description(self) -> str:
        return SINSAL_DESCRIPTIONS[self]


# 장성살부터 12지 순서대로
SINSAL_ORDER = list(Sinsal)

SINSAL_DESCRIPTIONS = {
    Sinsal.JANGSEONGSAL: "권위와 지위를 상징하며, 관리나 지도자 역할에 적합",
    Sinsal.BANANSAL: "안정과 평온을 추구하며, 조화로운 성격",
    Sinsal.YEOKMASAL: "이동과 변화를 좋아하며, 여행이나 이주 운이 강함",
    Sinsal.YUKHAESAL: "인간관계에서 갈등이나 해로움을 받기 쉬움",
    Sinsal.HWAGAESAL: "예술적 재능과 종교적 성향, 고독을 좋아함",
    Sinsal.GEOBSAL: "재물 손실이나 도난을 조심해야 함",
    Sinsal.JAESAL: "재해나 사고를 당하기 쉬우므로 조심해야 함",
    Sinsal.CHEONSAL: "하늘의 살기로 건강이나 우환을 조심해야 함",
    Sinsal.JISAL: "땅의 살기로 부동산이나 거주지 관련 문제 주의",
    Sinsal.NYEONSAL: "해마다 찾아오는 흉운으로 조심스러운 행동 필요",
    Sinsal.WOLSAL: "매달 찾아오는 흉운으로 계획적인 행동 필요",
    Sinsal.MANGSINSAL: "체면이나 명예에 손상을 입기 쉬우므로 언행 주의",
}


def sinsal_map(reference: EarthlyBranch) -> Dict[EarthlyBranch, Sinsal]:
    """기준 지지(년지/일지)의 삼합 장성 지지부터 12지를 돌며 12신살 배정"""
    anchor = EarthlyBranch(reference).triad_anchor
    return {
        EarthlyBranch((anchor + k) % 12): SINSAL_ORDER[k]
        for k in range(12)
    }


def sinsal_of(branch: EarthlyBranch, reference: EarthlyBranch) -> Sinsal:
    """reference 기준 branch 의 신살"""
    anchor = EarthlyBranch(reference).triad_anchor
    return SINSAL_ORDER[(branch - anchor) % 12]


# ===== 파생 결과 =====

STEM_POSITIONS = ("year", "month", "hour")
BRANCH_POSITIONS = ("year", "month", "day", "hour")


@dataclass(frozen=True)
class TenStarEntry:
    position: str       # year_stem, year_branch, ...
    char: str           # 해당 천간/지지
    star: TenStar

    def to_dict(self) -> Dict[str, Any]:
        return {
            "position": self.position,
            "char": self.char,
            "star": self.star.value,
            "hanja": self.star.hanja,
            "meaning": self.star.meaning,
        }


@dataclass(frozen=True)
class DerivedAnalysis:
    """사주 파생 분석"""
    day_master: HeavenlyStem
    ten_stars: Tuple[TenStarEntry, ...]
    hidden_stems: Dict[str, HiddenStemComposition]
    life_stages: Dict[str, LifeStage]
    sinsal_by_year_branch: Dict[str, Sinsal]
    sinsal_by_day_branch: Dict[str, Sinsal]
    element_count: Dict[str, int]
    yin_yang_count: Dict[str, int]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "day_master": {
                "stem": self.day_master.korean,
                "hanja": self.day_master.hanja,
                "element": self.day_master.element.value,
                "yin_yang": self.day_master.yin_yang,
                "description": self.day_master.description,
            },
            "ten_stars": [t.to_dict() for t in self.ten_stars],
            "hidden_stems": {k: v.to_dict() for k, v in self.hidden_stems.items()},
            "life_stages": {
                k: {"stage": v.value, "meaning": v.meaning} for k, v in self.life_stages.items()
            },
            "sinsal_by_year_branch": {
                k: {"sinsal": v.value, "description": v.description}
                for k, v in self.sinsal_by_year_branch.items()
            },
            "sinsal_by_day_branch": {
                k: {"sinsal": v.value, "description": v.description}
                for k, v in self.sinsal_by_day_branch.items()
            },
            "element_count": self.element_count,
            "yin_yang_count": self.yin_yang_count,
        }


class DeriveModule:
    """
    사주 파생 분석 모듈

    Features:
    1. 십성 (일간 제외 7자리)
    2. 지장간 (4지지)
    3. 12운성 (일간 기준 4지지)
    4. 12신살 (년지/일지 기준)
    5. 오행/음양 분포 (8글자)
    """

    def derive(self, pillars: FourPillars) -> DerivedAnalysis:
        logger.info(f"[DeriveModule] 파생 분석: {pillars.stem_string}/{pillars.branch_string}")
        day_master = pillars.day_master

        stars = []
        for name, pillar in pillars.items():
            if name != "day":
                stars.append(TenStarEntry(f"{name}_stem", pillar.stem.korean, ten_star(day_master, pillar.stem)))
            stars.append(TenStarEntry(f"{name}_branch", pillar.branch.korean, ten_star(day_master, pillar.branch)))

        branches = {name: pillar.branch for name, pillar in pillars.items()}

        return DerivedAnalysis(
            day_master=day_master,
            ten_stars=tuple(stars),
            hidden_stems={name: hidden_stems(b) for name, b in branches.items()},
            life_stages={name: life_stage(day_master, b) for name, b in branches.items()},
            sinsal_by_year_branch={
                name: sinsal_of(b, pillars.year.branch) for name, b in branches.items()
            },
            sinsal_by_day_branch={
                name: sinsal_of(b, pillars.day.branch) for name, b in branches.items()
            },
            element_count=self._count_elements(pillars),
            yin_yang_count=self._count_yin_yang(pillars),
        )

    def _count_elements(self, pillars: FourPillars) -> Dict[str, int]:
        """오행별 개수 (천간 4 + 지지 4)"""
        counter = Counter({e.value: 0 for e in Element})
        for _, pillar in pillars.items():
            counter[pillar.stem.element.value] += 1
            counter[pillar.branch.element.value] += 1
        return dict(counter)

    def _count_yin_yang(self, pillars: FourPillars) -> Dict[str, int]:
        counter = Counter({"양": 0, "음": 0})
        for _, pillar in pillars.items():
            counter[pillar.stem.yin_yang] += 1
            counter[pillar.branch.yin_yang] += 1
        return dict(counter)


derive_module = DeriveModule()
