from masterdata.serializers import unit_json


def stock_movement_json(mv):
    return {
        "id": mv.id,
        "material": {"id": mv.material_id, "code": mv.material.code, "name": mv.material.name},
        "movement_type": mv.movement_type,
        "quantity": mv.quantity,
        "signed_quantity": mv.signed_quantity,
        "balance_before": mv.balance_before,
        "balance_after": mv.balance_after,
        "reference": mv.reference,
        "note": mv.note,
        "operator_name": mv.operator_name,
        "transaction_at": mv.transaction_at,
    }


def tank_json(t):
    return {
        "id": t.id,
        "name": t.name,
        "material": {
            "id": t.material_id,
            "code": t.material.code,
            "name": t.material.name,
            "unit": unit_json(t.material.unit),
        },
        "capacity": t.capacity,
        "current_volume": t.current_volume,
        "free_capacity": t.free_capacity,
        "fill_percent": t.fill_percent,
    }


def tank_movement_json(mv):
    return {
        "id": mv.id,
        "tank": {"id": mv.tank_id, "name": mv.tank.name},
        "movement_type": mv.movement_type,
        "direction": mv.direction,
        "quantity": mv.quantity,
        "balance_before": mv.balance_before,
        "balance_after": mv.balance_after,
        "reference": mv.reference,
        "note": mv.note,
        "operator_name": mv.operator_name,
        "transaction_at": mv.transaction_at,
    }
