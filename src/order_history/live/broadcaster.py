"""
Order Update Broadcaster - Per-Hospital Push Rooms.

In-process stand-in for the real-time transport. Subscribers join the
room of one hospital and receive every update event published for it;
no event ever crosses into another hospital's room.

Structure: {hospital_id: {subscriber_id: callback}}
"""

from __future__ import annotations

import logging
import uuid
from threading import RLock
from typing import Callable, Dict, List, Optional, Tuple

from order_history.domain.value_objects import OrderUpdateEvent

logger = logging.getLogger(__name__)

UpdateCallback = Callable[[OrderUpdateEvent], object]


class OrderUpdateBroadcaster:
    """Delivers order update events to subscribers grouped by hospital."""

    def __init__(self) -> None:
        self._rooms: Dict[str, Dict[str, UpdateCallback]] = {}
        self._lock = RLock()

    def subscribe(
        self,
        hospital_id: str,
        callback: UpdateCallback,
        subscriber_id: Optional[str] = None,
    ) -> str:
        """
        Add a subscriber to a hospital room.

        Args:
            hospital_id: Room to join
            callback: Called with each event, in publish order
            subscriber_id: Id to register under; a repeated id replaces the
                           previous callback

        Returns:
            The subscriber id
        """
        subscriber_id = subscriber_id or str(uuid.uuid4())
        with self._lock:
            room = self._rooms.setdefault(hospital_id, {})
            if subscriber_id in room:
                logger.info(f"Replacing subscriber {subscriber_id} in room {hospital_id}")
            room[subscriber_id] = callback
            logger.info(
                f"Subscribed: hospital={hospital_id}, subscriber={subscriber_id}, "
                f"room_size={len(room)}"
            )
        return subscriber_id

    def unsubscribe(self, hospital_id: str, subscriber_id: str) -> bool:
        """Remove a subscriber. Returns False if it was not subscribed."""
        with self._lock:
            room = self._rooms.get(hospital_id)
            if not room or subscriber_id not in room:
                return False
            del room[subscriber_id]
            logger.info(f"Unsubscribed: hospital={hospital_id}, subscriber={subscriber_id}")

            # Clean up empty rooms
            if not room:
                del self._rooms[hospital_id]
            return True

    def publish(self, hospital_id: str, event: OrderUpdateEvent) -> int:
        """
        Deliver an event to every subscriber of the hospital's room.

        A subscriber whose callback raises is logged and removed; delivery
        to the others continues.

        Returns:
            Number of subscribers that received the event
        """
        with self._lock:
            subscribers: List[Tuple[str, UpdateCallback]] = list(
                self._rooms.get(hospital_id, {}).items()
            )

        delivered = 0
        for subscriber_id, callback in subscribers:
            try:
                callback(event)
                delivered += 1
            except Exception as e:
                logger.warning(
                    f"Failed to deliver order {event.id} to {subscriber_id}: {e}"
                )
                self.unsubscribe(hospital_id, subscriber_id)

        logger.debug(
            f"Published order {event.id} to hospital {hospital_id}: "
            f"{delivered}/{len(subscribers)} delivered"
        )
        return delivered

    def room_size(self, hospital_id: str) -> int:
        with self._lock:
            return len(self._rooms.get(hospital_id, {}))

    def rooms(self) -> List[str]:
        with self._lock:
            return list(self._rooms)
