"""Plain dict builders for the JSON API (kept next to the models they read)."""


def category_json(c):
    return {
        "id": c.id,
        "name": c.name,
        "description": c.description,
        "parent_id": c.parent_id,
        "level": c.level,
    }


def unit_json(u):
    return {"id": u.id, "name": u.name, "symbol": u.symbol}


def material_json(m):
    return {
        "id": m.id,
        "code": m.code,
        "name": m.name,
        "description": m.description,
        "is_active": m.is_active,
        "category": {"id": m.category_id, "name": m.category.name},
        "unit": unit_json(m.unit),
    }


def supplier_json(s):
    return {
        "id": s.id,
        "code": s.code,
        "name": s.name,
        "supplier_type": s.supplier_type,
        "owner_name": s.owner_name,
        "phone": s.phone,
        "address": s.address,
        "bank_name": s.bank_name,
        "bank_account_no": s.bank_account_no,
        "bank_account_name": s.bank_account_name,
        "is_active": s.is_active,
    }


def transporter_json(t):
    return {
        "id": t.id,
        "vehicle_plate": t.vehicle_plate,
        "driver_name": t.driver_name,
        "phone": t.phone,
    }


def buyer_json(b):
    return {
        "id": b.id,
        "code": b.code,
        "name": b.name,
        "contact_person": b.contact_person,
        "email": b.email,
        "phone": b.phone,
        "address": b.address,
        "npwp": b.npwp,
        "tax_status": b.tax_status,
        "bank_name": b.bank_name,
        "bank_account_no": b.bank_account_no,
        "bank_account_name": b.bank_account_name,
        "is_active": b.is_active,
    }
