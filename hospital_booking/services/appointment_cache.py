import json
import logging
from typing import List, Optional

from redis.exceptions import RedisError

from ..core.config import settings
from ..core.security import UserRole

logger = logging.getLogger(__name__)

# Role-scoped appointment listings that are cached
VIEW_SCOPES = (
    UserRole.ADMIN,
    UserRole.DOCTOR,
    UserRole.PATIENT,
    UserRole.RECEPTIONIST,
)

class AppointmentViewCache:
    """Caches appointment listings per role scope.

    Each scope has a generation counter; cached entries embed the generation
    they were built under, so bumping the counter invalidates every listing
    of that scope at once.
    """

    def __init__(self, redis_client, ttl_seconds: Optional[int] = None):
        self.redis = redis_client
        self.ttl_seconds = ttl_seconds or settings.APPOINTMENT_CACHE_TTL_SECONDS

    @staticmethod
    def _generation_key(scope: UserRole) -> str:
        return f"appointments:generation:{scope.value}"

    def current_generation(self, scope: UserRole) -> Optional[str]:
        """Generation a listing is built under; read once, before querying."""
        if scope not in VIEW_SCOPES:
            return "0"
        try:
            return self.redis.get(self._generation_key(scope)) or "0"
        except RedisError as e:
            logger.warning(f"Appointment cache generation read failed: {str(e)}")
            return None

    @staticmethod
    def _listing_key(scope: UserRole, generation: str, viewer_id: str, query_key: str) -> str:
        return f"appointments:view:{scope.value}:{generation}:{viewer_id}:{query_key}"

    def get(
        self, scope: UserRole, generation: Optional[str], viewer_id: str, query_key: str
    ) -> Optional[List[dict]]:
        if scope not in VIEW_SCOPES or generation is None:
            return None
        try:
            cached = self.redis.get(self._listing_key(scope, generation, viewer_id, query_key))
        except RedisError as e:
            logger.warning(f"Appointment cache read failed: {str(e)}")
            return None
        return json.loads(cached) if cached else None

    def set(
        self,
        scope: UserRole,
        generation: Optional[str],
        viewer_id: str,
        query_key: str,
        rows: List[dict],
    ) -> None:
        if scope not in VIEW_SCOPES or generation is None:
            return
        try:
            self.redis.setex(
                self._listing_key(scope, generation, viewer_id, query_key),
                self.ttl_seconds,
                json.dumps(rows),
            )
        except RedisError as e:
            logger.warning(f"Appointment cache write failed: {str(e)}")

    def invalidate_all(self) -> None:
        """Invalidate the appointment views of every role scope."""
        for scope in VIEW_SCOPES:
            try:
                self.redis.incr(self._generation_key(scope))
            except RedisError as e:
                logger.warning(f"Failed to invalidate {scope.value} appointment view: {str(e)}")
