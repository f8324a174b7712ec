import json
from decimal import Decimal

import pytest
from django.urls import reverse

from inventory.models import StockMovement, Tank
from inventory.services.ledger import get_balance
from masterdata.models import Supplier
from production.models import ProductionBatch


def _post(client, url, data, method="post"):
    return getattr(client, method)(url, data=json.dumps(data), content_type="application/json")


def test_login_required(client):
    r = client.get(reverse("inventory:stock-overview"))
    assert r.status_code == 302


def test_user_without_entity(client, django_user_model):
    lonely = django_user_model.objects.create_user("lonely", password="x12345!")
    client.force_login(lonely)
    r = client.get(reverse("inventory:stock-overview"))
    assert r.status_code == 400


def test_manual_movement_and_list(api, entity, tbs):
    r = _post(api, reverse("inventory:movement-list"), {"material": tbs.pk, "quantity": "1000", "reference": "OPN"})
    assert r.status_code == 201
    body = r.json()
    assert body["movement_type"] == "IN"
    assert Decimal(body["balance_after"]) == Decimal("1000")
    assert body["operator_name"] == "Budi Santoso"

    r = api.get(reverse("inventory:movement-list"), {"material": tbs.pk, "type": "IN"})
    assert r.status_code == 200
    assert r.json()["pagination"]["total"] == 1


def test_insufficient_stock_is_400(api, entity, tbs, stock):
    stock(tbs, 30)
    r = _post(api, reverse("inventory:movement-list"), {"material": tbs.pk, "quantity": "-50"})

    assert r.status_code == 400
    assert "Insufficient stock" in r.json()["error"]
    assert get_balance(entity, tbs) == Decimal("30")


def test_invalid_json_is_400(api):
    r = api.post(reverse("inventory:movement-list"), data="{not json", content_type="application/json")
    assert r.status_code == 400
    assert r.json()["error"] == "Validation error"


def test_material_of_other_entity_is_404(api, other_entity, make_material):
    foreign = make_material("CPO-X", owner=other_entity)
    r = api.get(reverse("masterdata:material-detail", args=[foreign.pk]))
    assert r.status_code == 404


def test_material_detail_shows_stock(api, tbs, stock):
    stock(tbs, 42)
    r = api.get(reverse("masterdata:material-detail", args=[tbs.pk]))
    assert r.status_code == 200
    assert Decimal(r.json()["stock"]) == Decimal("42")


def test_material_with_movements_cannot_be_deleted(api, tbs, stock):
    stock(tbs, 1)
    r = api.delete(reverse("masterdata:material-detail", args=[tbs.pk]))
    assert r.status_code == 400


def test_tank_crud(api, entity, cpo):
    r = _post(api, reverse("inventory:tank-list"), {"material": cpo.pk, "name": "Tangki 1", "capacity": "1000"})
    assert r.status_code == 201
    tank_id = r.json()["id"]

    r = _post(api, reverse("inventory:tank-list"), {"material": cpo.pk, "name": "Tangki 1", "capacity": "50"})
    assert r.status_code == 400
    assert "name" in r.json()["details"]

    r = _post(api, reverse("inventory:tank-detail", args=[tank_id]), {"name": "Tangki Utama", "capacity": "1500"},
              method="put")
    assert r.status_code == 200
    assert r.json()["name"] == "Tangki Utama"

    r = api.delete(reverse("inventory:tank-detail", args=[tank_id]))
    assert r.status_code == 200
    assert not Tank.objects.exists()


def test_capacity_cannot_drop_below_volume(api, cpo, stock, make_tank):
    stock(cpo, 1000)
    tank = make_tank("Tangki 1", cpo, 1000, volume=600)

    r = _post(api, reverse("inventory:tank-detail", args=[tank.pk]), {"name": "Tangki 1", "capacity": "500"},
              method="put")
    assert r.status_code == 400
    assert "capacity" in r.json()["details"]


def test_tank_endpoints(api, entity, cpo, stock, make_tank):
    stock(cpo, 2000)
    a = make_tank("Tangki A", cpo, 1000, volume=800)
    b = make_tank("Tangki B", cpo, 500, volume=100)

    r = _post(api, reverse("inventory:tank-transfer"),
              {"source_tank": a.pk, "destination_tank": b.pk, "quantity": "300"})
    assert r.status_code == 201
    assert Decimal(r.json()["destination"]["balance_after"]) == Decimal("400")

    r = _post(api, reverse("inventory:tank-transfer"),
              {"source_tank": a.pk, "destination_tank": b.pk, "quantity": "200"})
    assert r.status_code == 400

    r = _post(api, reverse("inventory:tank-transfer"),
              {"source_tank": a.pk, "destination_tank": 424242, "quantity": "1"})
    assert r.status_code == 404

    r = _post(api, reverse("inventory:tank-in", args=[a.pk]), {"quantity": "100"})
    assert r.status_code == 201
    r = _post(api, reverse("inventory:tank-out", args=[a.pk]), {"quantity": "50"})
    assert r.status_code == 201
    r = _post(api, reverse("inventory:tank-adjust", args=[a.pk]), {"quantity": "-1.5"})
    assert r.status_code == 201
    assert Decimal(r.json()["balance_after"]) == Decimal("548.5")

    r = api.get(reverse("inventory:tank-history"), {"tank": a.pk, "limit": 2})
    body = r.json()
    assert body["pagination"]["total"] == 5
    assert len(body["results"]) == 2

    r = api.get(reverse("inventory:tank-summary"))
    row = r.json()["results"][0]
    assert row["tank_count"] == 2
    assert Decimal(row["material_stock"]) == Decimal("2000")


def test_production_flow(api, entity, tbs, cpo, stock):
    stock(tbs, 1000)
    r = _post(api, reverse("production:batch-list"), {
        "input_material": tbs.pk,
        "input_quantity": "1000",
        "outputs": [{"output_material": cpo.pk, "output_quantity": "220"}],
    })
    assert r.status_code == 201
    body = r.json()
    assert body["state"] == "DRAFT"
    assert Decimal(body["outputs"][0]["yield_percentage"]) == Decimal("22.00")

    url = reverse("production:batch-detail", args=[body["id"]])
    r = _post(api, url, {"state": "COMPLETED"}, method="patch")
    assert r.status_code == 200
    assert r.json()["state"] == "COMPLETED"
    assert get_balance(entity, tbs) == 0
    assert get_balance(entity, cpo) == Decimal("220")

    r = api.delete(url)
    assert r.status_code == 400
    assert ProductionBatch.objects.filter(pk=body["id"]).exists()

    r = _post(api, url, {"state": "IN_PROGRESS"}, method="patch")
    assert r.status_code == 400


def test_production_output_errors(api, tbs, cpo):
    r = _post(api, reverse("production:batch-list"), {
        "input_material": tbs.pk,
        "input_quantity": "100",
        "outputs": [{"output_material": cpo.pk}],
    })
    assert r.status_code == 400
    assert "outputs[0]" in r.json()["details"]


def test_daily_report_requires_range(api):
    r = api.get(reverse("production:daily-report"))
    assert r.status_code == 400

    r = api.get(reverse("production:daily-report"), {"start": "2026-10-01", "end": "2026-10-31"})
    assert r.status_code == 200
    assert r.json()["batch_count"] == 0


def test_output_categories(api, categories):
    r = api.get(reverse("production:output-categories"))
    assert sorted(c["name"] for c in r.json()["results"]) == ["CPO", "Kernel"]


def test_tbs_receipt_flow(api, entity, tbs):
    supplier = Supplier.objects.create(entity=entity, code="SUP-0001", name="Ramp Sinar Jaya")
    r = _post(api, reverse("receiving:tbs-list"), {
        "material": tbs.pk,
        "supplier": supplier.pk,
        "vehicle_plate": "BK 9 XY",
        "driver_name": "Joko",
        "gross_weight": "10000",
        "tare_weight": "4000",
        "deduction_percent": "0",
        "price_per_kg": "2900",
        "state": "COMPLETED",
    })
    assert r.status_code == 201, r.content
    body = r.json()
    assert Decimal(body["net_weight_after_deduction"]) == Decimal("6000")
    assert body["transporter"]["vehicle_plate"] == "BK 9 XY"

    r = api.get(reverse("receiving:tbs-statistics"), {"material": tbs.pk})
    assert Decimal(r.json()["current_stock"]) == Decimal("6000")

    r = _post(api, reverse("receiving:tbs-detail", args=[body["id"]]), {"state": "CANCELLED"}, method="patch")
    assert r.status_code == 200
    assert get_balance(entity, tbs) == 0
    assert StockMovement.objects.filter(reference=body["number"]).count() == 2


def test_supplier_code_is_allocated(api):
    r = _post(api, reverse("masterdata:supplier-list"), {"name": "KUD Makmur", "supplier_type": "KUD"})
    assert r.status_code == 201
    assert r.json()["code"] == "SUP-0001"

    r = _post(api, reverse("masterdata:supplier-list"), {"name": "KUD Sejahtera", "supplier_type": "KUD"})
    assert r.json()["code"] == "SUP-0002"


@pytest.mark.parametrize("name", [
    "inventory:stock-overview",
    "inventory:tank-list",
    "inventory:tank-summary",
    "production:batch-list",
    "production:input-stock",
    "receiving:tbs-list",
    "masterdata:material-list",
    "masterdata:supplier-list",
])
def test_list_endpoints_answer(api, name):
    r = api.get(reverse(name))
    assert r.status_code == 200


def test_goods_receipt_flow(api, entity, cpo):
    r = _post(api, reverse("warehouse:receipt-list"), {
        "vendor_name": "CV Teknik Jaya",
        "delivery_note_no": "SJ-881",
        "received_by": "Andi",
        "checked_by": "Rudi",
        "state": "COMPLETED",
        "lines": [{"material": cpo.pk, "quantity": "12", "unit_price": "1500"}],
    })
    assert r.status_code == 201, r.content
    body = r.json()
    assert body["state"] == "COMPLETED"
    assert Decimal(body["total_value"]) == Decimal("18000")
    assert StockMovement.objects.get(reference=body["number"]).quantity == Decimal("12")

    r = api.delete(reverse("warehouse:receipt-detail", args=[body["id"]]))
    assert r.status_code == 400


def test_goods_receipt_line_errors(api, cpo):
    r = _post(api, reverse("warehouse:receipt-list"), {
        "vendor_name": "CV Teknik Jaya",
        "received_by": "Andi",
        "lines": [{"material": cpo.pk, "quantity": "-1"}],
    })
    assert r.status_code == 400
    assert "lines[0]" in r.json()["details"]


def test_store_request_to_goods_issue(api, entity, cpo, stock):
    stock(cpo, 50)
    r = _post(api, reverse("warehouse:request-list"), {
        "division": "Maintenance",
        "requested_by": "Sari",
        "lines": [{"material": cpo.pk, "quantity": "20"}],
    })
    assert r.status_code == 201, r.content
    sr = r.json()

    r = api.get(reverse("warehouse:request-check-stock", args=[sr["id"]]))
    assert r.json()["all_sufficient"] is True

    for state in ("PENDING", "APPROVED"):
        r = _post(api, reverse("warehouse:request-detail", args=[sr["id"]]), {"state": state}, method="patch")
        assert r.status_code == 200, r.content
    assert r.json()["approved_by"] == "Budi Santoso"

    r = _post(api, reverse("warehouse:issue-from-request"), {"store_request": sr["id"]})
    assert r.status_code == 201, r.content
    issue = r.json()
    assert issue["state"] == "ISSUED"
    assert issue["store_request"]["number"] == sr["number"]
    assert get_balance(entity, cpo) == Decimal("30")

    r = _post(api, reverse("warehouse:issue-from-request"), {"store_request": sr["id"]})
    assert r.status_code == 400

    r = _post(api, reverse("warehouse:issue-detail", args=[issue["id"]]),
              {"state": "COMPLETED", "received_by": "Sari"}, method="patch")
    assert r.status_code == 200
    assert r.json()["received_by"] == "Sari"


def test_product_shipment_flow(api, entity, cpo, stock):
    stock(cpo, 30000)
    r = _post(api, reverse("masterdata:buyer-list"), {"name": "PT Refinery Dumai"})
    assert r.status_code == 201, r.content
    buyer = r.json()
    assert buyer["code"] == "BYR-0001"

    r = _post(api, reverse("shipping:shipment-list"), {
        "buyer": buyer["id"],
        "material": cpo.pk,
        "vehicle_plate": "BM 9123 AX",
        "driver_name": "Joko",
        "gross_weight": "38000",
        "tare_weight": "14000",
        "state": "COMPLETED",
    })
    assert r.status_code == 201, r.content
    body = r.json()
    assert Decimal(body["net_weight"]) == Decimal("24000")
    assert get_balance(entity, cpo) == Decimal("6000")

    r = api.get(reverse("shipping:shipment-statistics"), {"material": cpo.pk})
    assert r.json()["total"]["count"] == 1

    r = _post(api, reverse("shipping:shipment-detail", args=[body["id"]]), {"state": "CANCELLED"}, method="patch")
    assert r.status_code == 200
    assert get_balance(entity, cpo) == Decimal("30000")


@pytest.mark.parametrize("name", [
    "warehouse:receipt-list",
    "warehouse:request-list",
    "warehouse:issue-list",
    "shipping:shipment-list",
    "shipping:shipment-statistics",
    "masterdata:buyer-list",
])
def test_document_list_endpoints_answer(api, name):
    r = api.get(reverse(name))
    assert r.status_code == 200
