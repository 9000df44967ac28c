"""
Dates d'intervention proposées: les trois prochains lundis (créneau fixe 8am-2pm).
Si l'on est lundi, la première date proposée est le lundi suivant.
"""
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

SERVICE_WINDOW = "8am-2pm"
SERVICE_WEEKDAY = 0  # lundi
SERVICE_DATES_COUNT = 3


def format_long(d: date) -> str:
    """Ex: 'Monday, January 6, 2025' (sans dépendre de la locale du serveur)."""
    return f"{d:%A, %B} {d.day}, {d.year}"


def format_day_month(d: date) -> str:
    """Ex: 'Jan 6'."""
    return f"{d:%b} {d.day}"


def next_service_dates(today: Optional[date] = None, count: int = SERVICE_DATES_COUNT) -> List[Dict[str, Any]]:
    today = today or date.today()
    days_ahead = (SERVICE_WEEKDAY - today.weekday()) % 7 or 7
    first = today + timedelta(days=days_ahead)
    dates = []
    for i in range(count):
        monday = first + timedelta(weeks=i)
        dates.append({
            "id": i + 1,
            "date": monday.isoformat(),
            "formatted": format_long(monday),
            "dayMonth": format_day_month(monday),
            "window": SERVICE_WINDOW,
        })
    return dates


def normalize_service_date(value: datetime) -> Dict[str, str]:
    """
    Dérive, depuis la même saisie, l'horodatage normalisé (UTC, ISO-8601)
    et le libellé d'affichage. Une date naïve est considérée comme UTC.
    Le libellé suit le jour tel que saisi (fuseau du client), pas le jour UTC.
    """
    formatted = format_long(value.date())
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return {"iso": value.astimezone(timezone.utc).isoformat(), "formatted": formatted}
