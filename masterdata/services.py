from django.db import transaction

from core.exceptions import NotFound
from core.models import NumberSeries
from masterdata.models import Buyer, Material, Supplier, Transporter


def get_material(entity, material_id) -> Material:
    """Material of *this* entity, or NotFound (never another tenant's row)."""
    try:
        return Material.objects.select_related("unit", "category").get(pk=material_id, entity=entity)
    except (Material.DoesNotExist, ValueError, TypeError):
        raise NotFound(f"Material {material_id} not found.")


def ensure_same_entity(entity, *objs):
    """Guard against cross-tenant references passed in by callers."""
    for obj in objs:
        if obj is not None and obj.entity_id != entity.pk:
            raise NotFound(f"{obj._meta.verbose_name.capitalize()} {obj.pk} not found.")


def next_supplier_code(entity) -> str:
    return NumberSeries.allocate_for(entity, "SUP", prefix="SUP-", min_width=4)


def next_buyer_code(entity) -> str:
    return NumberSeries.allocate_for(entity, "BYR", prefix="BYR-", min_width=4)


@transaction.atomic
def save_supplier(form) -> Supplier:
    """Save a SupplierForm, allocating a code when none was typed."""
    supplier = form.save(commit=False)
    if not supplier.code:
        supplier.code = next_supplier_code(supplier.entity)
    supplier.save()
    return supplier


def get_or_create_transporter(entity, vehicle_plate: str, driver_name: str) -> Transporter:
    """Weighbridge shortcut: reuse the truck if the plate is known."""
    plate = " ".join((vehicle_plate or "").upper().split())
    transporter, _ = Transporter.objects.get_or_create(
        entity=entity,
        vehicle_plate=plate,
        defaults={"driver_name": driver_name},
    )
    return transporter


@transaction.atomic
def save_buyer(form) -> Buyer:
    """Save a BuyerForm, allocating a BYR- code when none was typed."""
    buyer = form.save(commit=False)
    if not buyer.code:
        buyer.code = next_buyer_code(buyer.entity)
    buyer.save()
    return buyer
