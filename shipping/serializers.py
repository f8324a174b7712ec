from masterdata.serializers import transporter_json


def shipment_json(s):
    return {
        "id": s.id,
        "number": s.number,
        "seal_number": s.seal_number,
        "state": s.state,
        "shipped_on": s.shipped_on,
        "buyer": {"id": s.buyer_id, "code": s.buyer.code, "name": s.buyer.name},
        "contract_no": s.contract_no,
        "material": {"id": s.material_id, "code": s.material.code, "name": s.material.name},
        "tank": {"id": s.tank_id, "name": s.tank.name} if s.tank_id else None,
        "transporter": transporter_json(s.transporter),
        "weigher_name": s.weigher_name,
        "tare_method": s.tare_method,
        "tare_weight": s.tare_weight,
        "tare_weighed_at": s.tare_weighed_at,
        "gross_method": s.gross_method,
        "gross_weight": s.gross_weight,
        "gross_weighed_at": s.gross_weighed_at,
        "net_weight": s.net_weight,
        "ffa": s.ffa,
        "moisture": s.moisture,
        "dirt": s.dirt,
        "note": s.note,
        "operator_name": s.operator_name,
        "completed_at": s.completed_at,
        "cancelled_at": s.cancelled_at,
    }
