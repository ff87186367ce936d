import logging
from fastapi import APIRouter
from sqlalchemy import text

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
def health_check():
    """Report database and broker connectivity; the worker queue needs Redis."""
    db_ok = False
    redis_ok = False

    try:
        from app.database import engine
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        db_ok = True
    except Exception as exc:
        logger.warning("Health check: database unreachable: %s", exc)

    try:
        from app.config import get_settings
        import redis as redis_lib
        r = redis_lib.from_url(get_settings().REDIS_URL, socket_connect_timeout=2)
        r.ping()
        redis_ok = True
    except Exception as exc:
        logger.warning("Health check: redis unreachable: %s", exc)

    return {"status": "ok" if db_ok else "degraded", "db": db_ok, "redis": redis_ok}
