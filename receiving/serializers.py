from masterdata.serializers import transporter_json


def receipt_json(r):
    return {
        "id": r.id,
        "number": r.number,
        "state": r.state,
        "received_on": r.received_on,
        "material": {"id": r.material_id, "code": r.material.code, "name": r.material.name},
        "supplier": {"id": r.supplier_id, "code": r.supplier.code, "name": r.supplier.name},
        "transporter": transporter_json(r.transporter),
        "weigher_name": r.weigher_name,
        "garden_location": r.garden_location,
        "fruit_grade": r.fruit_grade,
        "gross_weight": r.gross_weight,
        "tare_weight": r.tare_weight,
        "net_weight": r.net_weight,
        "deduction_percent": r.deduction_percent,
        "deduction_kg": r.deduction_kg,
        "net_weight_after_deduction": r.net_weight_after_deduction,
        "price_per_kg": r.price_per_kg,
        "total_payment": r.total_payment,
        "note": r.note,
        "operator_name": r.operator_name,
        "completed_at": r.completed_at,
        "cancelled_at": r.cancelled_at,
    }
