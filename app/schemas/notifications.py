"""
app/schemas/notifications.py

Request body for manually created notifications.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field, model_validator

from app.models.notification import (
    ENTITY_BACKED_TYPES,
    NotificationPriority,
    NotificationType,
    RelatedEntityType,
)
from app.schemas.base import CamelModel


class NotificationCreate(CamelModel):
    type: NotificationType
    title: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1, max_length=1000)
    related_entity: Optional[str] = None
    related_entity_type: Optional[RelatedEntityType] = None
    target_users: List[str] = Field(default_factory=list)
    target_roles: List[str] = Field(default_factory=list)
    priority: NotificationPriority = NotificationPriority.MEDIUM
    data: Dict[str, Any] = Field(default_factory=dict)
    expires_at: Optional[datetime] = None

    @model_validator(mode="after")
    def check_related_entity(self):
        if self.type in ENTITY_BACKED_TYPES and not (self.related_entity and self.related_entity_type):
            raise ValueError("relatedEntity and relatedEntityType are required for this notification type")
        return self
