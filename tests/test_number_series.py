import datetime

from core.models import NumberSeries


def test_allocate_for_creates_series_and_pads(entity):
    assert NumberSeries.allocate_for(entity, "SUP", prefix="SUP-", min_width=4) == "SUP-0001"
    assert NumberSeries.allocate_for(entity, "SUP", prefix="SUP-", min_width=4) == "SUP-0002"
    assert NumberSeries.objects.get(entity=entity, code="SUP").next_number == 3


def test_series_are_per_entity(entity, other_entity):
    NumberSeries.allocate_for(entity, "SUP", prefix="SUP-", min_width=4)
    assert NumberSeries.allocate_for(other_entity, "SUP", prefix="SUP-", min_width=4) == "SUP-0001"


def test_monthly_series_restart_each_month(entity):
    october = datetime.date(2026, 10, 19)
    november = datetime.date(2026, 11, 1)

    assert NumberSeries.allocate_monthly(entity, "PROD", on_date=october) == "PROD-202610-0001"
    assert NumberSeries.allocate_monthly(entity, "PROD", on_date=october) == "PROD-202610-0002"
    assert NumberSeries.allocate_monthly(entity, "PROD", on_date=november) == "PROD-202611-0001"
    assert NumberSeries.allocate_monthly(entity, "TBS", on_date=october, min_width=5) == "TBS-202610-00001"
