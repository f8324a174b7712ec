from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management import call_command

from core.models import Entity, UserProfile
from core.permissions import grant_object_perms
from inventory.models import StockMovement, Tank
from inventory.services.ledger import get_balance
from masterdata.models import Material, Supplier


def test_seed_pks_with_stock():
    call_command("seed_pks", "--with-stock", "--entity-code", "demo")

    entity = Entity.objects.get(code="DEMO")
    assert Material.objects.filter(entity=entity).count() == 5
    assert list(Supplier.objects.filter(entity=entity).values_list("code", flat=True)) == [
        "SUP-0001", "SUP-0002", "SUP-0003",
    ]
    cpo = Material.objects.get(entity=entity, code="CPO-001")
    assert get_balance(entity, cpo) == Decimal("80000")
    assert Tank.objects.get(entity=entity, name="Tangki CPO 1").current_volume == Decimal("30000")

    admin = get_user_model().objects.get(username="admin.pks")
    assert admin.has_perm("inventory.change_tank", Tank.objects.get(entity=entity, name="Tangki CPO 2"))


def test_seed_pks_is_idempotent():
    call_command("seed_pks", "--with-stock")
    movements = StockMovement.objects.count()

    call_command("seed_pks", "--with-stock")

    assert StockMovement.objects.count() == movements
    assert Supplier.objects.count() == 3


def test_ledger_rows_are_view_only(entity, user, tbs, stock):
    UserProfile.objects.filter(user=user).update(is_entity_admin=True)
    movement = stock(tbs, 10).movement

    granted = grant_object_perms(movement)

    assert granted == [user]
    assert user.has_perm("inventory.view_stockmovement", movement)
    assert not user.has_perm("inventory.change_stockmovement", movement)
