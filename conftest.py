# conftest.py: shared fixtures for the PKS tests

import os
from decimal import Decimal

import pytest

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")


@pytest.fixture(autouse=True)
def _enable_db_for_all_tests(db):
    pass


@pytest.fixture(autouse=True)
def _fast_test_settings(settings):
    settings.PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]
    settings.ALLOWED_HOSTS = ["*", "testserver"]


@pytest.fixture
def entity():
    from core.models import Entity
    return Entity.objects.create(code="PKS", name="PT Perkebunan Kelapa Sawit")


@pytest.fixture
def other_entity():
    from core.models import Entity
    return Entity.objects.create(code="NILO", name="PT Nilo Eng")


@pytest.fixture
def user(django_user_model, entity):
    from core.models import UserProfile
    u = django_user_model.objects.create_user("operator", password="x12345!", first_name="Budi", last_name="Santoso")
    UserProfile.objects.create(user=u, entity=entity)
    return u


@pytest.fixture
def api(client, user):
    """Logged-in test client of a user belonging to `entity`."""
    client.force_login(user)
    return client


@pytest.fixture
def kg(entity):
    from masterdata.models import Unit
    return Unit.objects.create(entity=entity, name="Kilogram", symbol="KG")


@pytest.fixture
def categories(entity):
    from masterdata.models import MaterialCategory
    return {
        name: MaterialCategory.objects.create(entity=entity, name=name)
        for name in ("TBS", "CPO", "Kernel")
    }


@pytest.fixture
def make_material(entity, kg, categories):
    from masterdata.models import Material

    def _make(code, category="CPO", name=None, owner=None):
        owner = owner or entity
        if owner != entity:
            from masterdata.models import MaterialCategory, Unit
            cat = MaterialCategory.objects.get_or_create(entity=owner, name=category)[0]
            unit = Unit.objects.get_or_create(entity=owner, symbol="KG", defaults={"name": "Kilogram"})[0]
        else:
            cat, unit = categories[category], kg
        return Material.objects.create(entity=owner, category=cat, unit=unit, code=code, name=name or code)

    return _make


@pytest.fixture
def tbs(make_material):
    return make_material("TBS-001", category="TBS", name="TBS Inti")


@pytest.fixture
def cpo(make_material):
    return make_material("CPO-001", category="CPO", name="Crude Palm Oil")


@pytest.fixture
def kernel(make_material):
    return make_material("KER-001", category="Kernel", name="Palm Kernel")


@pytest.fixture
def stock(entity):
    """stock(material, qty): post an opening adjustment through the ledger."""
    from inventory.models import MovementType
    from inventory.services.ledger import apply_movement

    def _stock(material, qty):
        return apply_movement(entity, material, Decimal(str(qty)), movement_type=MovementType.ADJUSTMENT,
                              reference="OPENING")

    return _stock


@pytest.fixture
def make_tank(entity):
    """make_tank(name, material, capacity, volume=0): the volume is added with a tank IN movement."""
    from inventory.models import Tank
    from inventory.services.tanks import add_to_tank

    def _make(name, material, capacity, volume=0):
        tank = Tank.objects.create(entity=entity, material=material, name=name, capacity=Decimal(str(capacity)))
        if volume:
            add_to_tank(entity, tank.pk, Decimal(str(volume)), operator_name="test")
        return Tank.objects.get(pk=tank.pk)

    return _make
