# services package - lazy imports to prevent startup errors
import threading

from saju_core.services.errors import SajuError

# Lazy import: 실제 사용할 때 생성
saju_engine = None
_engine_lock = threading.Lock()


def get_saju_engine():
    global saju_engine
    if saju_engine is None:
        with _engine_lock:
            if saju_engine is None:
                from saju_core.services.saju_engine import build_engine
                saju_engine = build_engine()
    return saju_engine


def reset_saju_engine():
    """설정 변경 후 엔진 재생성용"""
    global saju_engine
    with _engine_lock:
        saju_engine = None
