from datetime import datetime, timezone

from btcfolio.services.timezone import format_date, format_datetime, local_timezone


def test_format_date_in_sao_paulo():
    # 02:00 UTC is still the previous evening in Sao Paulo (UTC-3)
    value = datetime(2024, 1, 1, 2, 0, tzinfo=timezone.utc)
    assert format_date(value, tz_name="America/Sao_Paulo") == "31/12/2023"
    assert format_datetime(value, tz_name="America/Sao_Paulo") == "31/12/2023 23:00"


def test_naive_datetime_is_treated_as_utc():
    assert format_datetime(datetime(2024, 5, 10, 8, 30), tz_name="UTC") == "10/05/2024 08:30"


def test_invalid_timezone_falls_back_to_utc():
    assert local_timezone("Not/AZone") is timezone.utc
