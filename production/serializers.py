from masterdata.serializers import material_json


def output_json(o):
    return {
        "id": o.id,
        "output_material": {"id": o.output_material_id, "code": o.output_material.code, "name": o.output_material.name},
        "output_quantity": o.output_quantity,
        "yield_percentage": o.yield_percentage,
    }


def batch_json(b, with_outputs=True):
    data = {
        "id": b.id,
        "number": b.number,
        "state": b.state,
        "production_date": b.production_date,
        "input_material": {"id": b.input_material_id, "code": b.input_material.code, "name": b.input_material.name},
        "input_quantity": b.input_quantity,
        "operator_name": b.operator_name,
        "completed_at": b.completed_at,
        "cancelled_at": b.cancelled_at,
        "created_at": b.created_at,
    }
    if with_outputs:
        data["outputs"] = [output_json(o) for o in b.outputs.all()]
    return data


def daily_report_json(report):
    return {
        "start": report["start"],
        "end": report["end"],
        "total_input": report["total_input"],
        "batch_count": report["batch_count"],
        "by_input_material": report["by_input_material"],
        "by_output_material": report["by_output_material"],
        "batches": [batch_json(b) for b in report["batches"]],
    }


def input_stock_json(rows):
    return [dict(material_json(m), stock=qty) for m, qty in rows]
