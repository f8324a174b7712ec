from decimal import Decimal


def _material(m):
    return {"id": m.id, "code": m.code, "name": m.name}


def receipt_line_json(line):
    return {
        "id": line.id,
        "material": _material(line.material),
        "quantity": line.quantity,
        "unit_price": line.unit_price,
        "line_total": line.line_total,
        "storage_location": line.storage_location,
        "note": line.note,
    }


def goods_receipt_json(r):
    lines = list(r.lines.select_related("material"))
    return {
        "id": r.id,
        "number": r.number,
        "state": r.state,
        "received_on": r.received_on,
        "vendor_name": r.vendor_name,
        "purchase_order_no": r.purchase_order_no,
        "delivery_note_no": r.delivery_note_no,
        "invoice_no": r.invoice_no,
        "received_by": r.received_by,
        "checked_by": r.checked_by,
        "note": r.note,
        "operator_name": r.operator_name,
        "lines": [receipt_line_json(line) for line in lines],
        "total_value": sum((line.line_total for line in lines), Decimal("0.00")),
        "completed_at": r.completed_at,
        "cancelled_at": r.cancelled_at,
    }


def _line_json(line):
    return {"id": line.id, "material": _material(line.material), "quantity": line.quantity, "note": line.note}


def store_request_json(sr):
    return {
        "id": sr.id,
        "number": sr.number,
        "state": sr.state,
        "requested_on": sr.requested_on,
        "division": sr.division,
        "requested_by": sr.requested_by,
        "approved_by": sr.approved_by,
        "approved_at": sr.approved_at,
        "note": sr.note,
        "operator_name": sr.operator_name,
        "lines": [_line_json(line) for line in sr.lines.select_related("material")],
    }


def stock_check_json(result):
    return {
        "store_request": {"id": result["store_request"].id, "number": result["store_request"].number},
        "all_sufficient": result["all_sufficient"],
        "items": [
            {
                "material": _material(row["material"]),
                "requested": row["requested"],
                "stock_on_hand": row["stock_on_hand"],
                "sufficient": row["sufficient"],
            }
            for row in result["items"]
        ],
    }


def goods_issue_json(gi):
    sr = gi.store_request
    return {
        "id": gi.id,
        "number": gi.number,
        "state": gi.state,
        "issued_on": gi.issued_on,
        "store_request": {"id": sr.id, "number": sr.number} if sr else None,
        "division": gi.division,
        "requested_by": gi.requested_by,
        "issued_by": gi.issued_by,
        "received_by": gi.received_by,
        "note": gi.note,
        "operator_name": gi.operator_name,
        "lines": [_line_json(line) for line in gi.lines.select_related("material")],
        "issued_at": gi.issued_at,
        "completed_at": gi.completed_at,
        "cancelled_at": gi.cancelled_at,
    }
