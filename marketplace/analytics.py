"""
Analytics aggregation for the admin and provider dashboards.

Every function here is a pure reducer over an already-loaded list of
documents: no store access, no side effects, and an empty list yields
zeroed tables. Records missing a grouping field are counted under
"Unknown" rather than dropped.
"""

from datetime import date, datetime, timedelta, timezone
from typing import Any, Iterable, Optional

UNKNOWN = "Unknown"
DEFAULT_PROVIDER_RATING = 4.9
RECENT_WINDOW = timedelta(hours=24)


def _bucket(value: Any) -> str:
    if value is None or value == "" or value == []:
        return UNKNOWN
    return str(value)


def count_by(records: Iterable[dict], field: str) -> dict[str, int]:
    """Frequency table of one field; dotted paths reach into nested dicts (service.name)"""
    counts: dict[str, int] = {}
    for record in records:
        value: Any = record
        for part in field.split("."):
            value = value.get(part) if isinstance(value, dict) else None
        key = _bucket(value)
        counts[key] = counts.get(key, 0) + 1
    return counts


def count_list_field(records: Iterable[dict], field: str) -> dict[str, int]:
    """Frequency table over list-valued fields; each element counts once"""
    counts: dict[str, int] = {}
    for record in records:
        values = record.get(field)
        if isinstance(values, str):
            values = [values]
        if not values:
            values = [UNKNOWN]
        for value in values:
            key = _bucket(value)
            counts[key] = counts.get(key, 0) + 1
    return counts


def top_key(counts: dict[str, int]) -> Optional[str]:
    """Key with the highest count; on ties the first key encountered wins"""
    if not counts:
        return None
    return max(counts, key=counts.get)


def to_datetime(value: Any) -> Optional[datetime]:
    """Coerce a stored timestamp to an aware UTC datetime (naive values are taken as UTC)"""
    if isinstance(value, datetime):
        result = value
    elif isinstance(value, str):
        try:
            result = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if result.tzinfo is None:
        result = result.replace(tzinfo=timezone.utc)
    return result


def to_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value[:10])
        except ValueError:
            return None
    return None


def count_recent(records: Iterable[dict], field: str, now: datetime) -> int:
    now = to_datetime(now)
    cutoff = now - RECENT_WINDOW
    total = 0
    for record in records:
        created = to_datetime(record.get(field))
        if created is not None and cutoff < created <= now:
            total += 1
    return total


def aggregate_waitlist(entries: list[dict], now: datetime) -> dict:
    by_city = count_by(entries, "city")
    by_service = count_list_field(entries, "servicesInterested")
    return {
        "totalCount": len(entries),
        "byCity": by_city,
        "byService": by_service,
        "byUrgency": count_by(entries, "howSoon"),
        "byVehicleType": count_by(entries, "vehicleType"),
        "recentSignups": count_recent(entries, "createdAt", now),
        "topCity": top_key(by_city),
        "topService": top_key(by_service),
    }


def aggregate_bookings(bookings: list[dict], now: datetime) -> dict:
    gross = 0
    platform = 0
    for booking in bookings:
        if booking.get("paymentStatus") == "paid":
            gross += booking.get("totalAmount") or 0
            platform += booking.get("platformFee") or 0
    by_service = count_by(bookings, "service.name")
    return {
        "totalCount": len(bookings),
        "byService": by_service,
        "byStatus": count_by(bookings, "status"),
        "byPaymentStatus": count_by(bookings, "paymentStatus"),
        "recentBookings": count_recent(bookings, "createdAt", now),
        "grossRevenue": gross,
        "platformRevenue": platform,
        "topService": top_key(by_service),
    }


def _vehicle_label(vehicle: Any) -> str:
    if not isinstance(vehicle, dict):
        return "Vehicle"
    parts = [str(vehicle.get(k)) for k in ("year", "make", "model") if vehicle.get(k)]
    return " ".join(parts) or "Vehicle"


def _day_label(day: date, today: date) -> str:
    if day == today:
        return "Today"
    if day == today + timedelta(days=1):
        return "Tomorrow"
    return day.isoformat()


def provider_dashboard_stats(bookings: list[dict], now: datetime, limit: int = 5) -> dict:
    """
    Provider dashboard figures from the provider's own bookings.

    weekRevenue sums providerAmount over bookings dated from seven days ago
    onward (scheduled jobs later this week included). upcoming lists the next
    `limit` bookings dated today or later, soonest first.
    """
    today = to_datetime(now).date()
    week_start = today - timedelta(days=7)

    dated = [(to_date(b.get("date")), b) for b in bookings]
    today_count = sum(1 for day, _ in dated if day == today)
    week_revenue = sum(
        (b.get("providerAmount") or 0) for day, b in dated if day is not None and day >= week_start
    )

    upcoming = sorted(
        ((day, b) for day, b in dated if day is not None and day >= today),
        key=lambda pair: pair[0],
    )[:limit]

    return {
        "todayBookings": today_count,
        "weekRevenue": week_revenue,
        "totalJobs": len(bookings),
        "rating": DEFAULT_PROVIDER_RATING,
        "upcoming": [
            {
                "id": b.get("id"),
                "customer": b.get("customerName") or "Customer",
                "service": (b.get("service") or {}).get("name") or "Service",
                "vehicle": _vehicle_label(b.get("vehicle")),
                "time": b.get("time"),
                "date": _day_label(day, today),
                "address": b.get("address"),
                "status": b.get("status"),
                "amount": b.get("providerAmount"),
            }
            for day, b in upcoming
        ],
    }
