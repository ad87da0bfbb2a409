"""Redis client and the one-time-code store for password resets.

Codes live under ``otp:<email>`` keys with a Redis TTL, so expiry needs no
sweeper and every app instance sees the same codes.

For Cloud Run with Memorystore:
- Set REDIS_HOST to the Memorystore instance IP
- Set REDIS_PASSWORD if authentication is enabled
- Ensure VPC connector is configured for Cloud Run
"""
import json
import secrets
import redis
from typing import Optional
from datetime import timedelta

from roleplay_tutor.core.logging import get_logger
from roleplay_tutor.core.config import settings

logger = get_logger(__name__)

# Redis connection pool (lazy initialization)
_redis_pool: Optional[redis.ConnectionPool] = None
_redis_client: Optional[redis.Redis] = None
_otp_store: Optional["OtpStore"] = None


def get_redis_client(
    host: Optional[str] = None,
    port: Optional[int] = None,
    db: Optional[int] = None,
    password: Optional[str] = None,
) -> Optional[redis.Redis]:
    """Get or create the pooled Redis client.

    Uses settings from environment variables if not explicitly provided.
    Returns None if Redis cannot be reached; callers treat that as a failed
    store operation.
    """
    global _redis_pool, _redis_client

    host = host or settings.redis_host
    port = port or settings.redis_port
    db = db if db is not None else settings.redis_db
    password = password or settings.redis_password

    if _redis_client is None:
        logger.info(f"Initializing Redis connection pool: {host}:{port}")

        try:
            _redis_pool = redis.ConnectionPool(
                host=host,
                port=port,
                db=db,
                password=password,
                decode_responses=True,
                max_connections=20,
                socket_connect_timeout=5,
                socket_timeout=5,
            )
            _redis_client = redis.Redis(connection_pool=_redis_pool)
            _redis_client.ping()
            logger.info("Redis connection established successfully")

        except redis.RedisError as e:
            logger.error(f"Failed to connect to Redis: {e}", exc_info=True)
            _redis_client = None
            return None

    return _redis_client


def generate_otp() -> str:
    """Return a random six-digit code (100000-999999)."""
    return str(100000 + secrets.randbelow(900000))


class OtpStore:
    """One-time codes keyed by lower-cased email, expiring via Redis TTL.

    Each entry is ``{"code", "email", "attempts"}``. A code is consumed by a
    successful verification and dropped once the attempt budget is spent.
    Verification runs as a WATCH/MULTI transaction on the entry's key, so
    concurrent checks of one code are counted one after another.

    Example:
        >>> store = OtpStore()
        >>> store.store("Giulia@example.com", "123456")
        >>> store.verify("giulia@example.com", "123456")
        True
        >>> store.verify("giulia@example.com", "123456")
        False
    """

    def __init__(
        self,
        redis_client: Optional[redis.Redis] = None,
        ttl_minutes: Optional[int] = None,
        max_attempts: Optional[int] = None,
        key_prefix: str = "otp:"
    ):
        self._client = redis_client
        self.ttl = timedelta(minutes=ttl_minutes or settings.otp_ttl_minutes)
        self.max_attempts = max_attempts or settings.otp_max_attempts
        self.key_prefix = key_prefix

    @property
    def redis(self) -> redis.Redis:
        """The injected client, else the shared pool, looked up on every use."""
        client = self._client or get_redis_client()
        if client is None:
            raise redis.ConnectionError("Redis is unavailable")
        return client

    def _make_key(self, email: str) -> str:
        return f"{self.key_prefix}{email.strip().lower()}"

    def store(self, email: str, code: str) -> bool:
        """Save a fresh code for an email, replacing any previous one.

        Returns:
            True if the code was saved
        """
        entry = {"code": code, "email": email.strip().lower(), "attempts": 0}
        try:
            self.redis.setex(self._make_key(email), self.ttl, json.dumps(entry))
            logger.debug(f"OTP stored for {entry['email']}")
            return True
        except Exception as e:
            logger.error(f"Error storing OTP for {entry['email']}: {e}", exc_info=True)
            return False

    def verify(self, email: str, code: str) -> bool:
        """Check a code.

        Missing or expired codes fail. Every wrong guess spends one attempt;
        once ``max_attempts`` have been spent the code is deleted. A correct
        code is deleted so it cannot be reused.
        """
        key = self._make_key(email)

        def check(pipe) -> bool:
            data = pipe.get(key)
            if not data:
                return False
            entry = json.loads(data)
            attempts = entry.get("attempts", 0)

            pipe.multi()
            if attempts >= self.max_attempts:
                logger.info(f"OTP attempts exhausted for {entry.get('email')}")
                pipe.delete(key)
                return False
            if entry.get("code") != code:
                entry["attempts"] = attempts + 1
                pipe.set(key, json.dumps(entry), keepttl=True)
                return False
            pipe.delete(key)
            return True

        try:
            # Retried by redis-py whenever the key changes between WATCH and EXEC
            return self.redis.transaction(check, key, value_from_callable=True)
        except Exception as e:
            logger.error(f"Error verifying OTP: {e}", exc_info=True)
            return False

    def delete(self, email: str) -> bool:
        """Drop the code for an email.

        Returns:
            True if a code was deleted
        """
        try:
            return bool(self.redis.delete(self._make_key(email)))
        except Exception as e:
            logger.error(f"Error deleting OTP: {e}", exc_info=True)
            return False


def get_otp_store() -> OtpStore:
    """Return the process-wide OTP store.

    The store holds no connection of its own, so it keeps working once Redis
    comes back after an outage.
    """
    global _otp_store
    if _otp_store is None:
        _otp_store = OtpStore()
    return _otp_store
