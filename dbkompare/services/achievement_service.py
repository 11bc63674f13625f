# dbkompare/services/achievement_service.py
"""
Logros: log inmutable de eventos + contadores agregados por usuario.

Todos los items viven en la misma tabla con clave (userId, sortKey):
    EVENT#{tipo}#{iso}     evento individual, nunca se modifica
    COUNTER#{nombre}       contador vivo (XP, GEMS, STREAK, CONSEC_DAYS)
    NOTIF#{nombre}         marca de notificación pendiente
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

from dbkompare.core.errors import ValidationError
from dbkompare.db.dynamodb import DynamoDBStore, Put, Update
from dbkompare.services.credit_service import is_number
from dbkompare.utils.helpers import utc_now

logger = logging.getLogger(__name__)

BUILD_UP_DAYS = 3
REMINDER_DELAY_DAYS = 3
BREAK_AFTER_DAYS = 1
NOTIF_LEAD_TIME = timedelta(hours=3)
STREAK_XP_REWARD = 10
STREAK_XP_REASON = "Streak point earned"


class EventType:
    LOGIN = "LOGIN"
    XP = "XP"
    GEMS = "GEMS"

    ALL = (LOGIN, XP, GEMS)


class Counter:
    XP = "COUNTER#XP"
    GEMS = "COUNTER#GEMS"
    STREAK = "COUNTER#STREAK"
    CONSEC_DAYS = "COUNTER#CONSEC_DAYS"


class Notification:
    STREAK_REMIND = "NOTIF#STREAK_REMIND"
    STREAK_BREAK = "NOTIF#STREAK_BREAK"


COUNTER_FOR_EVENT = {EventType.XP: Counter.XP, EventType.GEMS: Counter.GEMS}


def to_iso(moment: datetime) -> str:
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def parse_iso(value: str) -> datetime:
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def days_between(earlier: datetime, later: datetime) -> int:
    """Diferencia en días naturales UTC, ignorando la hora."""
    return (later.astimezone(timezone.utc).date() - earlier.astimezone(timezone.utc).date()).days


def next_consecutive_days(current: int, days_since_last: Optional[int]) -> int:
    """
    Mismo día: sin cambios. Día siguiente: +1. Cualquier otro caso
    (primer login, hueco de más de un día, reloj hacia atrás): reinicia a 1.
    """
    if days_since_last == 0:
        return current
    if days_since_last == 1:
        return current + 1
    return 1


class AchievementTracker:

    def __init__(self, store: DynamoDBStore, clock: Callable[[], datetime] = utc_now):
        self.store = store
        self.clock = clock

    @property
    def table(self) -> str:
        return self.store.tables.achievements

    # ── Escrituras básicas ──

    def _log_event(self, user_id: str, event_type: str, now: datetime,
                   delta: Optional[float] = None, reason: Optional[str] = None) -> Dict[str, Any]:
        timestamp = to_iso(now)
        item: Dict[str, Any] = {
            "userId": user_id,
            "sortKey": f"EVENT#{event_type}#{timestamp}",
            "type": event_type,
            "ts": timestamp,
        }
        if delta is not None:
            item["delta"] = delta
        if reason:
            item["reason"] = reason
        self.store.put(Put(table=self.table, item=item, unique_on="sortKey"))
        return item

    def _add_to_counter(self, user_id: str, counter: str, amount: float, now: datetime) -> Dict[str, Any]:
        return self.store.update(Update(
            table=self.table,
            key={"userId": user_id, "sortKey": counter},
            add={"value": amount},
            assign={"lastUpdate": to_iso(now)},
        ))

    def _schedule_streak_notifications(self, user_id: str, now: datetime) -> None:
        markers = {
            Notification.STREAK_REMIND: now + timedelta(days=REMINDER_DELAY_DAYS) - NOTIF_LEAD_TIME,
            Notification.STREAK_BREAK: now + timedelta(days=REMINDER_DELAY_DAYS + BREAK_AFTER_DAYS) - NOTIF_LEAD_TIME,
        }
        for sort_key, notify_at in markers.items():
            self.store.put(Put(table=self.table, item={
                "userId": user_id,
                "sortKey": sort_key,
                "nextNotifyAt": to_iso(notify_at),
                "sent": False,
            }))

    # ── Eventos ──

    def process_event(self, user_id: Optional[str], event_type: Optional[str],
                      delta: Any = None, reason: Optional[str] = None) -> Dict[str, Any]:
        if not user_id:
            raise ValidationError("userId is required")
        if event_type not in EventType.ALL:
            raise ValidationError(f"Invalid eventType. Allowed values: {', '.join(EventType.ALL)}")
        if event_type != EventType.LOGIN and (not is_number(delta) or delta <= 0):
            raise ValidationError("delta must be a positive number for XP and GEMS events")

        now = self.clock()
        if event_type == EventType.LOGIN:
            self._log_event(user_id, event_type, now, reason=reason)
            result = self._process_login(user_id, now)
        else:
            self._log_event(user_id, event_type, now, delta=delta, reason=reason)
            counter = self._add_to_counter(user_id, COUNTER_FOR_EVENT[event_type], delta, now)
            result = {"value": counter.get("value")}

        logger.info(f"Achievement event {event_type} processed for user {user_id}")
        return {"eventType": event_type, **result}

    def _process_login(self, user_id: str, now: datetime) -> Dict[str, Any]:
        counter = self.store.get_item(self.table, {"userId": user_id, "sortKey": Counter.CONSEC_DAYS})
        current = int((counter or {}).get("value") or 0)
        last_update = (counter or {}).get("lastUpdate")
        days_since = days_between(parse_iso(last_update), now) if last_update else None

        consecutive = next_consecutive_days(current, days_since)
        if days_since != 0:
            self.store.update(Update(
                table=self.table,
                key={"userId": user_id, "sortKey": Counter.CONSEC_DAYS},
                assign={"value": consecutive, "lastUpdate": to_iso(now)},
            ))

        streak_earned = days_since == 1 and consecutive % BUILD_UP_DAYS == 0
        if streak_earned:
            self._add_to_counter(user_id, Counter.STREAK, 1, now)
            self._log_event(user_id, EventType.XP, now, delta=STREAK_XP_REWARD, reason=STREAK_XP_REASON)
            self._add_to_counter(user_id, Counter.XP, STREAK_XP_REWARD, now)
            logger.info(f"User {user_id} earned a streak point after {consecutive} consecutive days")

        self._schedule_streak_notifications(user_id, now)
        return {"consecutiveDays": consecutive, "streakEarned": streak_earned}

    def award_xp(self, user_id: Optional[str], xp_amount: Any, reason: Optional[str] = None) -> Dict[str, Any]:
        """XP otorgado por otras partes del producto (p. ej. completar un quiz)."""
        if not user_id:
            raise ValidationError("userId is required")
        if not is_number(xp_amount) or xp_amount <= 0:
            raise ValidationError("xpAmount must be a positive number")
        return self.process_event(user_id, EventType.XP, delta=xp_amount, reason=reason or "XP awarded")

    def get_metrics(self, user_id: str) -> Dict[str, Any]:
        items = self.store.query_partition(self.table, "userId", user_id, "sortKey", "COUNTER#")
        values = {item["sortKey"].split("#", 1)[1]: item.get("value", 0) for item in items}
        return {
            "userId": user_id,
            "xp": values.get("XP", 0),
            "gems": values.get("GEMS", 0),
            "streak": values.get("STREAK", 0),
            "consecutiveDays": values.get("CONSEC_DAYS", 0),
        }
