"""
Token blacklist (logout) with an in-memory cache in front of the table.
"""
from datetime import datetime, timezone
import logging

from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from models import TokenBlacklist

logger = logging.getLogger(__name__)

# {jti: expiry (naive UTC)}
blacklist_cache: dict[str, datetime] = {}
CACHE_MAX_SIZE = 10000


def _now_naive() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def cleanup_expired_cache() -> int:
    """Remove expired tokens from memory cache"""
    now = _now_naive()
    expired_keys = [jti for jti, exp_time in blacklist_cache.items() if exp_time < now]
    for key in expired_keys:
        del blacklist_cache[key]
    if expired_keys:
        logger.debug(f"Cache cleanup: Removed {len(expired_keys)} expired tokens")
    return len(expired_keys)


def is_token_blacklisted(jti: str, db: Session) -> bool:
    """
    Check the memory cache first, then the table. Positive hits are cached
    until the token would have expired anyway.
    """
    if jti in blacklist_cache:
        if blacklist_cache[jti] > _now_naive():
            return True
        del blacklist_cache[jti]
        return False

    try:
        blacklisted = db.query(TokenBlacklist).filter(TokenBlacklist.jti == jti).first()
    except SQLAlchemyError as e:
        logger.error(f"Database error checking blacklist: {str(e)}")
        # Fail open: don't block requests on DB errors
        return False

    if blacklisted:
        blacklist_cache[jti] = blacklisted.token_exp
        if len(blacklist_cache) > CACHE_MAX_SIZE:
            cleanup_expired_cache()
        return True
    return False


def blacklist_token(db: Session, jti: str, user_id: int, token_exp: datetime, reason: str = "user_logout") -> bool:
    """
    Revoke a token. Returns False when it was already revoked.
    """
    existing = db.query(TokenBlacklist).filter(TokenBlacklist.jti == jti).first()
    if existing:
        return False

    db.add(TokenBlacklist(jti=jti, user_id=user_id, token_exp=token_exp, reason=reason))
    db.commit()
    blacklist_cache[jti] = token_exp
    return True


def cleanup_expired_blacklist(db: Session, batch_size: int = 1000) -> int:
    """
    Delete expired blacklist rows in batches and prune the memory cache.
    Scheduled daily from main.lifespan.
    """
    now = _now_naive()
    total_deleted = 0
    while True:
        ids = [
            row.id for row in db.query(TokenBlacklist.id)
            .filter(TokenBlacklist.token_exp < now)
            .limit(batch_size)
            .all()
        ]
        if not ids:
            break
        db.query(TokenBlacklist).filter(TokenBlacklist.id.in_(ids)).delete(synchronize_session=False)
        db.commit()
        total_deleted += len(ids)

    cleanup_expired_cache()
    logger.info(f"Token blacklist cleanup: removed {total_deleted} expired tokens")
    return total_deleted
