# dbkompare/services/leaderboard_service.py
import logging
import math
import random
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from dbkompare.core.errors import ValidationError
from dbkompare.crud import crud_user
from dbkompare.db.dynamodb import DynamoDBStore
from dbkompare.services.achievement_service import Counter, to_iso
from dbkompare.utils.helpers import to_millis, utc_now

logger = logging.getLogger(__name__)

PAGE_SIZE = 10
TOP_RANKERS_LIMIT = 10
DUMMY_PREFIX = "DUMMY_"
DUMMY_SORT_KEY = "DUMMY_USER"
DUMMY_XP_RANGE = (50, 500)
DUMMY_NAMES = [
    "Alex Johnson", "Maria Garcia", "James Smith", "Sarah Williams", "Michael Brown",
    "Emily Davis", "David Miller", "Olivia Wilson", "Daniel Moore", "Sophia Taylor",
    "Matthew Anderson", "Isabella Thomas", "Christopher Jackson", "Mia White", "Andrew Harris",
    "Charlotte Martin", "Joshua Thompson", "Amelia Lee", "Ryan Clark", "Harper Lewis",
    "Nathan Walker", "Ella Hall", "Tyler Allen", "Grace Young", "Brandon Wright",
]


def weekly_seed(moment: datetime) -> str:
    year, week, _ = moment.isocalendar()
    return f"{year}-W{week:02d}"


class LeaderboardService:
    """
    Ranking por XP. Las entradas ficticias (DUMMY_USER) rellenan el ranking
    mientras hay pocos usuarios reales.
    """

    def __init__(self, store: DynamoDBStore, clock: Callable[[], datetime] = utc_now):
        self.store = store
        self.clock = clock

    @property
    def table(self) -> str:
        return self.store.tables.achievements

    def get_page(self, page: Any = 1) -> Dict[str, Any]:
        try:
            page = int(page)
        except (TypeError, ValueError):
            raise ValidationError("page must be a positive integer")
        if page < 1:
            raise ValidationError("page must be a positive integer")

        entries: List[Dict[str, Any]] = [
            {"userId": item["userId"], "xp": item.get("value", 0), "isDummy": False}
            for item in self.store.scan(self.table, {"sortKey": Counter.XP})
        ]
        entries += [
            {"userId": item["userId"], "xp": item.get("value", 0), "isDummy": True, "name": item.get("name")}
            for item in self.store.scan(self.table, {"sortKey": DUMMY_SORT_KEY})
        ]
        entries.sort(key=lambda e: (-e["xp"], e["userId"]))

        total = len(entries)
        total_pages = max(1, math.ceil(total / PAGE_SIZE))
        start = (page - 1) * PAGE_SIZE
        page_entries = entries[start:start + PAGE_SIZE]

        real_ids = [e["userId"] for e in page_entries if not e["isDummy"]]
        users = crud_user.get_users_by_ids(self.store, real_ids) if real_ids else {}

        leaderboard = []
        for offset, entry in enumerate(page_entries):
            user = users.get(entry["userId"])
            leaderboard.append({
                "rank": start + offset + 1,
                "userId": entry["userId"],
                "name": entry.get("name") if entry["isDummy"] else (user.name if user else None),
                "email": user.email if user else None,
                "xp": entry["xp"],
                "isDummy": entry["isDummy"],
            })

        return {
            "leaderboard": leaderboard,
            "pagination": {
                "currentPage": page,
                "totalPages": total_pages,
                "totalUsers": total,
                "limit": PAGE_SIZE,
                "hasNextPage": page < total_pages,
                "hasPreviousPage": page > 1,
            },
        }

    def shuffle_dummy_users(self) -> Dict[str, Any]:
        """
        Reasigna el XP de las entradas ficticias. La semilla es la semana ISO,
        así que repetir el shuffle dentro de la misma semana da el mismo resultado.
        """
        now = self.clock()
        seed = weekly_seed(now)
        rng = random.Random(seed)

        existing = sorted(self.store.scan(self.table, {"sortKey": DUMMY_SORT_KEY}), key=lambda i: i["userId"])
        created = not existing
        if created:
            existing = [
                {"userId": f"{DUMMY_PREFIX}{index:03d}", "sortKey": DUMMY_SORT_KEY, "name": name, "createdAt": to_millis(now)}
                for index, name in enumerate(DUMMY_NAMES, start=1)
            ]

        items = []
        for item in existing:
            items.append({**item, "value": rng.randint(*DUMMY_XP_RANGE), "lastUpdate": to_iso(now)})
        self.store.batch_write(self.table, items)

        logger.info(f"{'Created' if created else 'Shuffled'} {len(items)} dummy leaderboard users (seed {seed})")
        return {"created": created, "count": len(items), "seed": seed}

    def get_top_rankers(self, limit: int = TOP_RANKERS_LIMIT) -> Dict[str, Any]:
        """
        Los `limit` usuarios reales con más XP. Si no llegan, se completan con
        usuarios ficticios generados en memoria (nombres rotados por semana y
        XP por debajo del último usuario real).
        """
        now = self.clock()
        counters = [
            {"userId": item["userId"], "xp": item["value"], "lastUpdate": item.get("lastUpdate")}
            for item in self.store.scan(self.table, {"sortKey": Counter.XP})
            if item.get("value") is not None and not item["userId"].startswith(DUMMY_PREFIX)
        ]
        counters.sort(key=lambda e: (-e["xp"], e["userId"]))
        top = counters[:limit]

        lowest_xp = top[-1]["xp"] if top else None
        top += self._fill_with_dummies(limit - len(top), lowest_xp, now)
        top.sort(key=lambda e: -e["xp"])

        real_ids = [e["userId"] for e in top if not e["userId"].startswith(DUMMY_PREFIX)]
        users = crud_user.get_users_by_ids(self.store, real_ids) if real_ids else {}

        leaderboard = []
        for index, entry in enumerate(top, start=1):
            is_dummy = entry["userId"].startswith(DUMMY_PREFIX)
            user = users.get(entry["userId"])
            leaderboard.append({
                "rank": index,
                "userId": None if is_dummy else entry["userId"],
                "name": (user.name if user else None) or entry.get("name") or "Unknown User",
                "email": user.email if user else None,
                "xp": entry["xp"],
                "lastUpdate": entry["lastUpdate"],
            })
        return {"leaderboard": leaderboard}

    def _fill_with_dummies(self, count: int, lowest_xp: Optional[float], now: datetime) -> List[Dict[str, Any]]:
        if count <= 0:
            return []
        rng = random.Random(weekly_seed(now))
        names = list(DUMMY_NAMES)
        rng.shuffle(names)

        low, high = DUMMY_XP_RANGE
        if lowest_xp is not None:
            high = max(0, min(high, int(lowest_xp) - 1))
            if low > high:
                low = high // 2

        return [
            {
                "userId": f"{DUMMY_PREFIX}{index:03d}",
                "xp": rng.randint(low, high),
                "name": name,
                "lastUpdate": to_iso(now),
            }
            for index, name in enumerate(names[:count], start=1)
        ]
