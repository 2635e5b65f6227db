"""
Saju Core - Main App
━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
사주 8글자 / 대운 / 세운 / 파생 분석 API
- 만세력 데이터 소스: 설정(calendar_source)에 따라 none / sqlite / kasi
- 도메인 에러(SajuError) → error_code + HTTP status
━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
"""
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from saju_core.config import get_settings
from saju_core.services import get_saju_engine
from saju_core.services.errors import SajuError

settings = get_settings()

logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))
logger = logging.getLogger(__name__)

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# 🔥 App 선언 (최상단)
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
app = FastAPI(title="Saju Core", version="1.0.0")

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# 🔥 /health - 무조건 즉시 OK (최우선)
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/")
def root():
    return {"service": "Saju Core", "status": "running", "calendar_source": settings.calendar_source}


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# 라우터 등록 (try-except로 보호)
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
try:
    from saju_core.routers import calculate
    app.include_router(calculate.router, prefix="/api/v1", tags=["Saju"])
    logger.info("✅ calculate 라우터 등록 (/api/v1/saju)")
except Exception as e:
    logger.error(f"❌ calculate 라우터 등록 실패: {e}")


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# 🔥 Startup - 만세력 소스 연결
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
@app.on_event("startup")
def startup():
    logger.info("━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━")
    logger.info("🚀 Saju Core 가동 시작")
    logger.info("━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━")
    logger.info(f"   calendar_source: {settings.calendar_source}")
    logger.info(f"   require_almanac: {settings.require_almanac}")
    logger.info(f"   cache_enabled: {settings.cache_enabled}")

    app.state.engine_error = None
    try:
        engine = get_saju_engine()
        logger.info(f"✅ 사주 엔진 준비 완료 (source={engine.source_name})")
    except SajuError as e:
        # 설정 오류여도 서버는 뜨고 /ready 에서 확인
        app.state.engine_error = e.message
        logger.warning(f"⚠️ 사주 엔진 초기화 실패: {e.message}")

    logger.info("━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━")


@app.get("/ready")
def ready():
    """
    서버 준비 상태 확인

    Returns:
        - engine: 사주 엔진 초기화 여부
        - calendar: 만세력 소스 연결 여부
        - kasi_key: KASI API 키 설정 여부 (kasi 소스일 때만 의미 있음)
    """
    checks = {"engine": False, "calendar": False, "kasi_key": bool(settings.clean_kasi_api_key)}
    try:
        engine = get_saju_engine()
        checks["engine"] = True
        checks["calendar"] = engine.calendar is not None
        checks["source"] = engine.source_name
    except SajuError as e:
        checks["error"] = e.message

    ok = checks["engine"] and (checks["calendar"] or not settings.require_almanac)
    return {"status": "ready" if ok else "partial", "checks": checks}


@app.exception_handler(SajuError)
async def saju_error_handler(request: Request, exc: SajuError):
    logger.warning(f"[API] {exc.error_code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"success": False, **exc.to_dict()})


@app.exception_handler(Exception)
async def error_handler(request: Request, exc: Exception):
    logger.error(f"Error: {exc}")
    return JSONResponse(status_code=500, content={"error": str(exc)[:100]})


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.host, port=settings.port)
