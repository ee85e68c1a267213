from datetime import UTC, datetime, timedelta


def now() -> datetime:
    return datetime.now(UTC)


def minutes_ago(minutes: float, reference: datetime | None = None) -> datetime:
    return (reference or now()) - timedelta(minutes=minutes)
