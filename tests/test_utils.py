from datetime import date, datetime, timedelta, timezone

import pytest

from inventory_export import utils


def test_to_date_only_keeps_the_instants_own_date() -> None:
    late_evening = datetime(2024, 5, 31, 23, 30, tzinfo=timezone(timedelta(hours=3)))

    assert utils.to_date_only(late_evening) == date(2024, 5, 31)
    assert utils.to_date_only("2024-05-31T23:59:59Z") == date(2024, 5, 31)
    assert utils.to_date_only("2024-05-01") == date(2024, 5, 1)
    assert utils.to_date_only(date(2024, 5, 1)) == date(2024, 5, 1)


def test_to_date_only_rejects_garbage() -> None:
    with pytest.raises(ValueError):
        utils.to_date_only("last tuesday")


def test_export_stamp_is_filename_safe() -> None:
    stamp = utils.get_export_stamp(datetime(2024, 5, 1, 10, 22, 3, 123456, tzinfo=timezone.utc))

    assert stamp == "2024-05-01T10-22-03-123456Z"
    assert utils.safe_base(stamp) == stamp


def test_safe_base_strips_path_characters() -> None:
    assert utils.safe_base("../etc/passwd") == "..etcpasswd"
    assert utils.safe_base("report 1;rm") == "report1rm"


def test_label_to_filename() -> None:
    assert utils.label_to_filename("2024-05-01") == "2024-05-01.json"
    assert "/" not in utils.label_to_filename("a/b")


def test_last_day_of_month() -> None:
    assert utils.is_last_day_of_month(date(2024, 2, 29))
    assert not utils.is_last_day_of_month(date(2023, 2, 27))
