from decimal import Decimal

import pytest
from django.core.exceptions import ValidationError

from core.exceptions import InsufficientStock, NotFound, TankStockExceedsMaterialStock
from inventory.models import MovementType, StockBalance, StockMovement
from inventory.services.ledger import apply_movement, get_balance, stock_summary


def test_first_movement_creates_balance(entity, tbs):
    result = apply_movement(entity, tbs, Decimal("1000"), reference="TBS-202610-00001")

    assert result.balance.quantity_on_hand == Decimal("1000")
    assert result.movement.movement_type == MovementType.IN
    assert result.movement.quantity == Decimal("1000")
    assert result.movement.balance_before == Decimal("0")
    assert result.movement.balance_after == Decimal("1000")
    assert get_balance(entity, tbs) == Decimal("1000")


def test_negative_quantity_is_out(entity, tbs, stock):
    stock(tbs, 100)
    result = apply_movement(entity, tbs, "-40")

    assert result.movement.movement_type == MovementType.OUT
    assert result.movement.quantity == Decimal("40")
    assert result.movement.signed_quantity == Decimal("-40")
    assert get_balance(entity, tbs) == Decimal("60")


def test_insufficient_stock_leaves_nothing_behind(entity, tbs, stock):
    stock(tbs, 30)
    rows_before = StockMovement.objects.count()

    with pytest.raises(InsufficientStock):
        apply_movement(entity, tbs, Decimal("-50"))

    assert get_balance(entity, tbs) == Decimal("30")
    assert StockMovement.objects.count() == rows_before


def test_out_without_any_balance(entity, tbs):
    with pytest.raises(InsufficientStock):
        apply_movement(entity, tbs, Decimal("-1"))
    assert not StockBalance.objects.filter(material=tbs).exists()


def test_zero_quantity_rejected(entity, tbs):
    with pytest.raises(ValidationError):
        apply_movement(entity, tbs, 0)
    assert StockMovement.objects.count() == 0


@pytest.mark.parametrize("qty", ["NaN", "Infinity", "-Infinity", "sNaN"])
def test_non_finite_quantity_rejected(entity, tbs, qty):
    with pytest.raises(ValidationError) as exc:
        apply_movement(entity, tbs, qty)
    assert "quantity" in exc.value.message_dict
    assert StockMovement.objects.count() == 0


@pytest.mark.parametrize("movement_type,qty", [
    (MovementType.IN, "-5"),
    (MovementType.OUT, "5"),
    (MovementType.TRANSFER, "5"),
])
def test_type_and_sign_must_agree(entity, tbs, stock, movement_type, qty):
    stock(tbs, 10)
    with pytest.raises(ValidationError):
        apply_movement(entity, tbs, Decimal(qty), movement_type=movement_type)
    assert get_balance(entity, tbs) == Decimal("10")


def test_adjustment_carries_its_own_sign(entity, tbs, stock):
    stock(tbs, 100)
    result = apply_movement(entity, tbs, Decimal("-2.5"), movement_type=MovementType.ADJUSTMENT,
                            note="Stock opname")

    assert result.movement.movement_type == MovementType.ADJUSTMENT
    assert result.movement.quantity == Decimal("2.5")
    assert result.movement.balance_after == Decimal("97.5")


def test_material_of_other_entity_is_not_found(entity, other_entity, make_material):
    foreign = make_material("TBS-X", category="TBS", owner=other_entity)
    with pytest.raises(NotFound):
        apply_movement(entity, foreign, Decimal("10"))


def test_movement_chain_is_continuous(entity, tbs):
    for qty in ("500", "-120", "75.5", "-0.5", "1000"):
        apply_movement(entity, tbs, Decimal(qty))

    movements = list(StockMovement.objects.filter(entity=entity, material=tbs).order_by("id"))
    assert movements[0].balance_before == 0
    for prev, nxt in zip(movements, movements[1:]):
        assert nxt.balance_before == prev.balance_after
    assert movements[-1].balance_after == get_balance(entity, tbs)
    assert sum(m.signed_quantity for m in movements) == get_balance(entity, tbs)


def test_decrease_below_tank_volume_rejected(entity, cpo, stock, make_tank):
    stock(cpo, 1000)
    make_tank("Tangki 1", cpo, 2000, volume=800)

    with pytest.raises(TankStockExceedsMaterialStock):
        apply_movement(entity, cpo, Decimal("-300"))
    assert get_balance(entity, cpo) == Decimal("1000")

    apply_movement(entity, cpo, Decimal("-200"))
    assert get_balance(entity, cpo) == Decimal("800")


def test_stock_summary(entity, tbs, cpo, stock):
    stock(tbs, 10)
    apply_movement(entity, tbs, Decimal("1000"))
    apply_movement(entity, tbs, Decimal("-400"))

    rows = {r["code"]: r for r in stock_summary(entity)}

    assert rows["TBS-001"]["current_stock"] == Decimal("610")
    assert rows["TBS-001"]["total_in"] == Decimal("1000")
    assert rows["TBS-001"]["total_out"] == Decimal("400")
    assert rows["TBS-001"]["net_adjustment"] == Decimal("10")
    assert rows["CPO-001"]["current_stock"] == 0
