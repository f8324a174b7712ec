from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction

from core.models import Entity, UserProfile
from core.permissions import grant_object_perms
from inventory.models import MovementType, Tank
from inventory.services.ledger import apply_movement, get_balance
from inventory.services.tanks import add_to_tank
from masterdata.models import Material, MaterialCategory, Supplier, Unit
from masterdata.services import next_supplier_code

CATEGORIES = [
    ("TBS", "Tandan buah segar"),
    ("CPO", "Crude palm oil"),
    ("Kernel", "Palm kernel"),
    ("Cangkang", "Shell and fibre"),
]

UNITS = [
    ("Kilogram", "KG"),
    ("Liter", "L"),
]

MATERIALS = [
    # code, name, category, unit, opening stock
    ("TBS-001", "TBS Inti", "TBS", "KG", Decimal("250000")),
    ("TBS-002", "TBS Plasma", "TBS", "KG", Decimal("120000")),
    ("CPO-001", "Crude Palm Oil", "CPO", "KG", Decimal("80000")),
    ("KER-001", "Palm Kernel", "Kernel", "KG", Decimal("15000")),
    ("SHL-001", "Cangkang", "Cangkang", "KG", Decimal("0")),
]

TANKS = [
    # name, material code, capacity, initial volume
    ("Tangki CPO 1", "CPO-001", Decimal("50000"), Decimal("30000")),
    ("Tangki CPO 2", "CPO-001", Decimal("50000"), Decimal("20000")),
    ("Tangki Kernel 1", "KER-001", Decimal("20000"), Decimal("0")),
]

SUPPLIERS = [
    ("Ramp Sinar Jaya", Supplier.SupplierType.RAMP_PERON),
    ("KUD Makmur", Supplier.SupplierType.KUD),
    ("Kelompok Tani Harapan", Supplier.SupplierType.KELOMPOK_TANI),
]


class Command(BaseCommand):
    help = "Seed a palm oil mill entity with categories, materials, tanks, suppliers and an admin user."

    def add_arguments(self, parser):
        parser.add_argument("--entity-code", type=str, default="PKS")
        parser.add_argument("--entity-name", type=str, default="PT Perkebunan Kelapa Sawit")
        parser.add_argument("--username", type=str, default="admin.pks")
        parser.add_argument("--password", type=str, default="admin123")
        parser.add_argument("--with-stock", action="store_true",
                            help="Post opening stock adjustments and fill the tanks.")

    @transaction.atomic
    def handle(self, *args, **options):
        entity, created = Entity.objects.get_or_create(
            code=options["entity_code"].upper().strip(),
            defaults={"name": options["entity_name"]},
        )
        self.stdout.write(f"Entity {entity.code} {'created' if created else 'exists'}")

        User = get_user_model()
        user, created = User.objects.get_or_create(
            username=options["username"],
            defaults={"is_staff": True, "first_name": "Admin", "last_name": entity.code},
        )
        if created:
            user.set_password(options["password"])
            user.save()
        UserProfile.objects.get_or_create(user=user, defaults={"entity": entity, "is_entity_admin": True})

        categories = {}
        for name, description in CATEGORIES:
            categories[name], _ = MaterialCategory.objects.get_or_create(
                entity=entity, name=name, defaults={"description": description},
            )

        units = {}
        for name, symbol in UNITS:
            units[symbol], _ = Unit.objects.get_or_create(entity=entity, symbol=symbol, defaults={"name": name})

        materials = {}
        for code, name, category, unit, _opening in MATERIALS:
            materials[code], _ = Material.objects.get_or_create(
                entity=entity,
                code=code,
                defaults={"name": name, "category": categories[category], "unit": units[unit]},
            )

        for name, supplier_type in SUPPLIERS:
            if not Supplier.objects.filter(entity=entity, name=name).exists():
                Supplier.objects.create(entity=entity, code=next_supplier_code(entity), name=name,
                                        supplier_type=supplier_type)

        tanks = []
        for name, material_code, capacity, volume in TANKS:
            tank, _ = Tank.objects.get_or_create(
                entity=entity, name=name, defaults={"material": materials[material_code], "capacity": capacity},
            )
            grant_object_perms(tank)
            tanks.append((tank, volume))

        if options["with_stock"]:
            self._opening_stock(entity, materials, tanks)

        self.stdout.write(self.style.SUCCESS(
            f"Seeded {len(materials)} materials, {len(tanks)} tanks, {len(SUPPLIERS)} suppliers for {entity.code}"
        ))

    def _opening_stock(self, entity, materials, tanks):
        for code, _name, _category, _unit, opening in MATERIALS:
            material = materials[code]
            missing = opening - get_balance(entity, material)
            if missing > 0:
                apply_movement(entity, material, missing, movement_type=MovementType.ADJUSTMENT,
                               reference="OPENING", note="Opening stock", operator_name="seed_pks")

        for tank, volume in tanks:
            missing = volume - tank.current_volume
            if missing > 0:
                add_to_tank(entity, tank.pk, missing, operator_name="seed_pks", reference="OPENING")

        self.stdout.write("Opening stock posted")
