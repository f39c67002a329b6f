# schemas/notifications.py

from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from datetime import datetime


class NotificationOut(BaseModel):
    id: int
    type: str
    title: str
    message: str
    data: Dict[str, Any] = {}
    read: bool
    read_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class NotificationListOut(BaseModel):
    items: List[NotificationOut]
    total: int
    unread_count: int


class NotificationCreate(BaseModel):
    partner_id: int
    type: str = "system"
    title: str = Field(min_length=1, max_length=255)
    message: str = Field(min_length=1, max_length=1000)
    data: Dict[str, Any] = {}


class MarkAllReadOut(BaseModel):
    updated: int
