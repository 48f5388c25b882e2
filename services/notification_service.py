from datetime import datetime
from typing import Optional, Set
import asyncio
import logging

import httpx

from config.settings import EXPO_PUSH_URL, PUSH_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)


class NotificationService:
    """Best-effort push notifications. Failures are logged, never raised."""

    def __init__(self, db=None, push_url: str = EXPO_PUSH_URL, timeout: float = PUSH_TIMEOUT_SECONDS):
        self.db = db
        self.push_url = push_url
        self.timeout = timeout
        self._pending: Set[asyncio.Task] = set()

    def notify(self, push_token: Optional[str], title: str, body: str, user_id: Optional[str] = None) -> None:
        """Schedule a notification without waiting for it."""
        try:
            task = asyncio.get_running_loop().create_task(self.send(push_token, title, body, user_id))
        except RuntimeError:
            logger.error(f"No running event loop, dropping notification {title!r}")
            return
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def send(self, push_token: Optional[str], title: str, body: str, user_id: Optional[str] = None) -> bool:
        if self.db is not None and user_id:
            try:
                await self.db.notifications.insert_one({
                    "user_id": user_id,
                    "title": title,
                    "message": body,
                    "created_at": datetime.utcnow(),
                    "read": False
                })
            except Exception as e:
                logger.error(f"Error storing notification for {user_id}: {str(e)}")

        if not push_token:
            return False

        message = {
            "to": push_token,
            "sound": "default",
            "title": title,
            "body": body,
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    self.push_url,
                    json=message,
                    headers={
                        "Accept": "application/json",
                        "Accept-encoding": "gzip, deflate",
                    },
                )
                response.raise_for_status()
            logger.info(f"Notification sent to {push_token}")
            return True
        except httpx.HTTPError as e:
            logger.error(f"Error sending push notification to {push_token}: {str(e)}")
            return False
