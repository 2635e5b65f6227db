"""
/api/v1/saju API 테스트
"""
import pytest
from fastapi.testclient import TestClient

from saju_core.main import app
from saju_core.services import get_saju_engine
from saju_core.services.cache import CachedCalendarSource
from saju_core.services.saju_engine import SajuEngine

client = TestClient(app)

BIRTH_2000 = {
    "birth_year": 2000,
    "birth_month": 3,
    "birth_day": 7,
    "birth_hour": 12,
    "birth_minute": 34,
}


@pytest.fixture
def use_engine():
    """엔진 의존성 교체"""
    def _use(engine: SajuEngine):
        app.dependency_overrides[get_saju_engine] = lambda: engine
        return engine
    yield _use
    app.dependency_overrides.clear()


@pytest.fixture
def formula_engine(use_engine):
    return use_engine(SajuEngine())


@pytest.fixture
def almanac_engine(use_engine, almanac_repo):
    return use_engine(SajuEngine(calendar=CachedCalendarSource(almanac_repo)))


class TestPillarsAPI:

    def test_formula(self, formula_engine):
        response = client.post("/api/v1/saju/pillars", json=BIRTH_2000)
        assert response.status_code == 200

        data = response.json()
        assert data["success"] is True
        assert data["source"] == "formula"
        assert data["saju"]["year_pillar"]["ganji"] == "경진"
        assert data["saju"]["month_pillar"]["ganji"] == "기묘"
        assert data["saju"]["day_pillar"]["ganji"] == "갑자"
        assert data["saju"]["hour_pillar"]["ganji"] == "경오"
        assert data["stem_string"] == "경갑기경"
        assert data["branch_string"] == "오자묘진"
        assert data["day_master"] == "갑"
        assert data["day_master_element"] == "목"
        assert data["solar_date"] == "2000-03-07"
        assert data["almanac"] is None

    def test_almanac(self, almanac_engine):
        response = client.post("/api/v1/saju/pillars", json=BIRTH_2000)
        assert response.status_code == 200
        data = response.json()
        assert data["source"] == "almanac"
        assert data["almanac"]["day_ganji"] == "갑자"
        assert data["almanac"]["zodiac"] == "용"

    def test_lunar_input(self, almanac_engine):
        payload = dict(BIRTH_2000, birth_month=2, birth_day=6, is_solar=False)
        response = client.post("/api/v1/saju/pillars", json=payload)
        assert response.status_code == 200
        assert response.json()["solar_date"] == "2000-03-07"

    def test_longitude_correction(self, formula_engine):
        payload = dict(BIRTH_2000, birth_hour=0, birth_minute=20, longitude=127.0)
        data = client.post("/api/v1/saju/pillars", json=payload).json()
        assert data["solar_time_correction_minutes"] == 32
        # 00:20 - 32분 = 전날 23:48 → 야자시
        assert data["saju"]["day_pillar"]["ganji"] == "갑자"
        assert data["saju"]["hour_pillar"]["ganji"] == "갑자"

    def test_validation_422(self, formula_engine):
        response = client.post("/api/v1/saju/pillars", json=dict(BIRTH_2000, birth_year=1800))
        assert response.status_code == 422
        response = client.post("/api/v1/saju/pillars", json=dict(BIRTH_2000, birth_hour=24))
        assert response.status_code == 422

    def test_impossible_date_400(self, formula_engine):
        response = client.post("/api/v1/saju/pillars", json=dict(BIRTH_2000, birth_month=2, birth_day=30))
        assert response.status_code == 400
        assert response.json()["detail"]["error_code"] == "INVALID_INPUT"

    def test_lunar_without_almanac_503(self, formula_engine):
        response = client.post("/api/v1/saju/pillars", json=dict(BIRTH_2000, is_solar=False))
        assert response.status_code == 503
        assert response.json()["detail"]["error_code"] == "UNCONFIGURED"

    def test_require_almanac_503(self, use_engine):
        use_engine(SajuEngine(require_almanac=True))
        response = client.post("/api/v1/saju/pillars", json=BIRTH_2000)
        assert response.status_code == 503

    def test_not_found_404(self, almanac_engine):
        response = client.post("/api/v1/saju/pillars", json=dict(BIRTH_2000, birth_year=2001))
        assert response.status_code == 404
        assert response.json()["detail"]["error_code"] == "NOT_FOUND"


class TestDaeunAPI:

    def test_heuristic(self, formula_engine):
        response = client.post("/api/v1/saju/daeun", json=dict(BIRTH_2000, gender="male", current_age=26))
        assert response.status_code == 200
        data = response.json()
        assert data["direction"] == "forward"
        assert data["start_age"] == 5
        assert data["start_age_method"] == "heuristic"
        assert len(data["periods"]) == 10
        assert data["periods"][0]["ganji"] == "경진"
        assert data["current"]["period"]["ganji"] == "임오"
        assert data["board"].startswith("대운")

    def test_almanac_max_age(self, almanac_engine):
        response = client.post("/api/v1/saju/daeun", json=dict(BIRTH_2000, gender="female", max_age=20))
        data = response.json()
        assert data["direction"] == "backward"
        assert data["start_age"] == 3
        assert data["start_age_method"] == "almanac"
        assert data["distance_days"] == 1
        assert [p["start_age"] for p in data["periods"]] == [3, 13]
        assert data["periods"][0]["ganji"] == "무인"

    def test_invalid_gender_422(self, formula_engine):
        response = client.post("/api/v1/saju/daeun", json=dict(BIRTH_2000, gender="other"))
        assert response.status_code == 422


class TestSaeunAPI:

    def test_single_year(self, formula_engine):
        data = client.get("/api/v1/saju/saeun", params={"year": 2026}).json()
        assert data["entries"][0]["ganji"] == "병오"

    def test_range(self, formula_engine):
        data = client.get(
            "/api/v1/saju/saeun",
            params={"start_year": 2024, "end_year": 2026, "birth_year": 2000}
        ).json()
        assert [e["ganji"] for e in data["entries"]] == ["갑진", "을사", "병오"]
        assert [e["age"] for e in data["entries"]] == [25, 26, 27]

    def test_missing_params_400(self, formula_engine):
        response = client.get("/api/v1/saju/saeun")
        assert response.status_code == 400

    def test_inverted_range_400(self, formula_engine):
        response = client.get("/api/v1/saju/saeun", params={"start_year": 2026, "end_year": 2024})
        assert response.status_code == 400

    def test_out_of_range_422(self, formula_engine):
        response = client.get("/api/v1/saju/saeun", params={"year": 1899})
        assert response.status_code == 422


class TestAnalysisAPI:

    def test_from_pillars(self, formula_engine):
        payload = {"year_pillar": "경진", "month_pillar": "기묘", "day_pillar": "갑자", "hour_pillar": "경오"}
        response = client.post("/api/v1/saju/analysis", json=payload)
        assert response.status_code == 200
        data = response.json()
        assert data["saju"]["day_pillar"]["ganji"] == "갑자"
        assert data["analysis"]["element_count"] == {"목": 2, "화": 1, "토": 2, "금": 2, "수": 1}
        assert data["analysis"]["life_stages"]["hour"]["stage"] == "사"

    def test_from_birth(self, formula_engine):
        response = client.post("/api/v1/saju/analysis", json={"birth": BIRTH_2000})
        assert response.status_code == 200
        assert response.json()["analysis"]["day_master"]["stem"] == "갑"

    def test_missing_input_400(self, formula_engine):
        response = client.post("/api/v1/saju/analysis", json={"year_pillar": "경진"})
        assert response.status_code == 400

    def test_bad_ganji_400(self, formula_engine):
        payload = {"year_pillar": "경진", "month_pillar": "기묘", "day_pillar": "갑축", "hour_pillar": "경오"}
        response = client.post("/api/v1/saju/analysis", json=payload)
        assert response.status_code == 400
        assert response.json()["detail"]["error_code"] == "INVALID_INPUT"


class TestLocationAPI:

    def test_location_field(self, formula_engine):
        payload = dict(BIRTH_2000, birth_year=1962, birth_month=3, birth_day=4,
                       birth_hour=1, birth_minute=25, location="서울")
        data = client.post("/api/v1/saju/pillars", json=payload).json()
        assert data["solar_time_correction_minutes"] == 32
        assert (data["stem_string"], data["branch_string"]) == ("무신임임", "자축인인")

    def test_unknown_location_400(self, formula_engine):
        response = client.post("/api/v1/saju/pillars", json=dict(BIRTH_2000, location="뉴욕"))
        assert response.status_code == 400
        assert response.json()["detail"]["error_code"] == "INVALID_INPUT"

    def test_location_with_longitude_400(self, formula_engine):
        payload = dict(BIRTH_2000, location="서울", longitude=127.0)
        assert client.post("/api/v1/saju/pillars", json=payload).status_code == 400

    def test_daeun_location(self, formula_engine):
        payload = dict(BIRTH_2000, gender="male", location="부산")
        assert client.post("/api/v1/saju/daeun", json=payload).status_code == 200

    def test_list(self):
        data = client.get("/api/v1/saju/locations").json()
        assert len(data) == 20
        assert data[0] == {"name": "서울", "longitude": 126.978, "latitude": 37.5665, "correction_minutes": 32}


class TestGanzhiDaysAPI:

    def test_found(self, almanac_engine):
        response = client.get("/api/v1/saju/ganzhi-days", params={"ganzhi": "甲子"})
        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 1
        result = data["results"][0]
        assert result["solar_date"] == "2000-03-07"
        assert result["lunar_date"] == "2000-02-06"
        assert result["day_pillar"] == "갑자"
        assert result["day_pillar_hanja"] == "甲子"

    def test_year_filter(self, almanac_engine):
        data = client.get("/api/v1/saju/ganzhi-days", params={"ganzhi": "을축", "year": 2001}).json()
        assert data["count"] == 0
        assert data["results"] == []

    def test_malformed_400(self, almanac_engine):
        response = client.get("/api/v1/saju/ganzhi-days", params={"ganzhi": "갑축"})
        assert response.status_code == 400

    def test_limit_422(self, almanac_engine):
        response = client.get("/api/v1/saju/ganzhi-days", params={"ganzhi": "갑자", "limit": 0})
        assert response.status_code == 422

    def test_without_almanac_503(self, formula_engine):
        response = client.get("/api/v1/saju/ganzhi-days", params={"ganzhi": "갑자"})
        assert response.status_code == 503
        assert response.json()["detail"]["error_code"] == "UNCONFIGURED"


class TestUtilityAPI:

    def test_solar_terms(self, formula_engine):
        data = client.get("/api/v1/saju/solar-terms/2024").json()
        assert len(data["terms"]) == 24
        assert data["terms"][0]["name"] == "입춘"
        assert data["terms"][0]["instant"] == "2024-02-04T17:27"

    def test_solar_terms_out_of_range(self, formula_engine):
        assert client.get("/api/v1/saju/solar-terms/1800").status_code == 422

    def test_hour_options(self):
        data = client.get("/api/v1/saju/hour-options").json()
        assert len(data) == 12
        assert data[0]["ji_hanja"] == "子"

    def test_cache_stats_disabled(self, formula_engine):
        data = client.get("/api/v1/saju/cache-stats").json()
        assert data == {"enabled": False, "source": "formula"}

    def test_cache_stats_enabled(self, almanac_engine):
        client.post("/api/v1/saju/pillars", json=BIRTH_2000)
        data = client.get("/api/v1/saju/cache-stats").json()
        assert data["enabled"] is True
        assert data["misses"] >= 1


class TestSystemEndpoints:

    def test_root(self):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["service"] == "Saju Core"

    def test_health(self):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_docs(self):
        response = client.get("/docs")
        assert response.status_code == 200
