"""Notification repository for data access operations."""

import json

from sqlalchemy.orm import Session

from inventory_hub.modules.notifications.models import Notification


class NotificationRepository:
    """Repository for notification data access."""

    def __init__(self, db: Session):
        """Initialize repository with database session."""
        self.db = db

    def create(self, notification: Notification) -> Notification:
        self.db.add(notification)
        self.db.commit()
        self.db.refresh(notification)
        return notification

    def delete_for_approval_request(self, user_ids: list[str], request_id: int) -> int:
        """Delete notifications of the given users that reference an approval request.

        Returns:
            Number of deleted notifications
        """
        if not user_ids:
            return 0
        candidates = (
            self.db.query(Notification)
            .filter(
                Notification.user_id.in_(user_ids),
                Notification.data.like(f'%"approvalRequestId":{request_id}%'),
            )
            .all()
        )
        deleted = 0
        for notification in candidates:
            # LIKE also matches longer ids sharing the prefix
            if json.loads(notification.data).get("approvalRequestId") == request_id:
                self.db.delete(notification)
                deleted += 1
        self.db.commit()
        return deleted
