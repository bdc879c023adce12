import json
import logging
from typing import Optional

import redis
from fastapi import Depends

from community_portal.config import config
from community_portal.models.event import RegistrationFormSchema
from community_portal.services.form_schema_builder import FormSchemaBuilder
from community_portal.state import get_redis

logger = logging.getLogger(__name__)


class SchemaDraftStore:
    """
    Keeps unsaved registration form drafts in Redis with a sliding TTL.

    A draft belongs to one admin session and one event. It is opened from the
    event's persisted schema, rewritten after every builder operation, and
    removed once the admin saves or cancels. A draft that fails to save stays
    in place so the admin can retry.
    """

    def __init__(self, redis_client: redis.Redis, ttl_seconds: int = 3600):
        """
        Args:
            redis_client: Redis client instance (from dependency injection)
            ttl_seconds: Seconds of inactivity before a draft expires
        """
        self.redis_client = redis_client
        self.ttl_seconds = ttl_seconds

    def _draft_key(self, owner_id: str, event_id: int) -> str:
        return f"registration_draft:{owner_id}:{event_id}"

    def load(self, owner_id: str, event_id: int) -> Optional[FormSchemaBuilder]:
        """
        Load the draft for an event, or None when there is none.

        A corrupted draft is dropped and treated as missing.

        Raises:
            redis.RedisError: If Redis operation fails
        """
        key = self._draft_key(owner_id, event_id)
        try:
            draft_json = self.redis_client.get(key)
        except redis.RedisError as e:
            logger.error(f"Redis error loading draft for event {event_id}: {e}")
            raise

        if not draft_json:
            return None

        try:
            data = json.loads(draft_json)
        except json.JSONDecodeError:
            logger.error(f"Corrupted draft for event {event_id}, discarding it")
            self.discard(owner_id, event_id)
            return None

        if not isinstance(data, dict):
            logger.error(f"Draft for event {event_id} is not an object, discarding it")
            self.discard(owner_id, event_id)
            return None

        return FormSchemaBuilder.from_dict(data)

    def open(
        self, owner_id: str, event_id: int, persisted: RegistrationFormSchema
    ) -> FormSchemaBuilder:
        """Return the existing draft, or start one from the persisted schema"""
        builder = self.load(owner_id, event_id)
        if builder is None:
            builder = FormSchemaBuilder.from_schema(persisted)
            self.save(owner_id, event_id, builder)
            logger.info(f"Opened registration form draft for event {event_id}")
        return builder

    def save(self, owner_id: str, event_id: int, builder: FormSchemaBuilder) -> None:
        """
        Store the draft and refresh its TTL.

        Raises:
            redis.RedisError: If Redis operation fails
        """
        key = self._draft_key(owner_id, event_id)
        try:
            self.redis_client.setex(key, self.ttl_seconds, json.dumps(builder.to_dict()))
        except redis.RedisError as e:
            logger.error(f"Redis error saving draft for event {event_id}: {e}")
            raise

    def discard(self, owner_id: str, event_id: int) -> None:
        """
        Drop the draft for an event.

        Raises:
            redis.RedisError: If Redis operation fails
        """
        key = self._draft_key(owner_id, event_id)
        try:
            self.redis_client.delete(key)
            logger.info(f"Discarded registration form draft for event {event_id}")
        except redis.RedisError as e:
            logger.error(f"Redis error discarding draft for event {event_id}: {e}")
            raise


def get_draft_store(redis_client: redis.Redis = Depends(get_redis)) -> SchemaDraftStore:
    """FastAPI dependency: draft store on the shared Redis client"""
    return SchemaDraftStore(redis_client, ttl_seconds=config["draft_ttl_seconds"])
