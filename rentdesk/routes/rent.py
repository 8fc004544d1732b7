from datetime import datetime

from flask import Blueprint, current_app, g, jsonify, request

from ..security import manager_required
from ..services import get_ledger, get_notice_engine
from ..utils.parsing import parse_instant

bp = Blueprint("rent", __name__)


def _as_of():
    raw = request.args.get("as_of")
    return parse_instant(raw) if raw else datetime.now()


def _payment_args(data):
    return {
        "amount_paid": data.get("amount_paid"),
        "paid_date": data.get("paid_date"),
        "method": data.get("payment_method"),
        "notes": data.get("notes"),
    }


def _settle_notices(record):
    resolved = get_notice_engine().resolve_notices_for_record(record)
    if resolved:
        current_app.logger.info("Resolved %d notices after payment on record %s", len(resolved), record.id)


@bp.get("/rent/overview")
@manager_required
def rent_overview():
    """Current-period ledger: persisted records plus projected overdue months"""
    as_of = _as_of()
    ledger = get_ledger()
    obligations = ledger.derive_current_period_view(g.manager.id, as_of)

    status = request.args.get("status")
    views = [o.to_view() for o in obligations if not status or o.status == status]

    return jsonify({
        "as_of": as_of.isoformat(),
        "summary": ledger.summarize(obligations, as_of),
        "rent_records": views,
    }), 200


@bp.post("/rent/records")
@manager_required
def create_rent_record():
    """Manual ledger entry; updates the month's record if one exists"""
    data = request.get_json(silent=True) or {}

    for field in ("tenant_id", "due_date"):
        if data.get(field) is None:
            return jsonify({
                "error": "validation_error",
                "message": f"{field} is required"
            }), 400

    record, created = get_ledger().create_record_for_period(
        g.manager.id,
        data["tenant_id"],
        data["due_date"],
        amount_due=data.get("amount_due"),
        amount_paid=data.get("amount_paid"),
        paid_date=data.get("paid_date"),
        method=data.get("payment_method"),
        notes=data.get("notes"),
    )
    return jsonify(record.serialize()), 201 if created else 200


@bp.post("/rent/records/<int:record_id>/payments")
@manager_required
def record_payment(record_id):
    data = request.get_json(silent=True) or {}
    record = get_ledger().record_payment(record_id, manager_id=g.manager.id, **_payment_args(data))
    _settle_notices(record)
    return jsonify(record.serialize()), 200


@bp.post("/rent/projections/<int:tenant_id>/<period>/payments")
@manager_required
def record_projected_payment(tenant_id, period):
    """Payment against a month that has no ledger row yet"""
    data = request.get_json(silent=True) or {}
    ledger = get_ledger()
    projected = ledger.project(g.manager.id, tenant_id, period)
    record = ledger.record_payment(projected, manager_id=g.manager.id, **_payment_args(data))
    _settle_notices(record)
    return jsonify(record.serialize()), 201


@bp.post("/rent/records/<int:record_id>/late-fee")
@manager_required
def apply_late_fee(record_id):
    data = request.get_json(silent=True) or {}
    record = get_ledger().apply_late_fee(record_id, data.get("amount"), manager_id=g.manager.id)
    return jsonify({
        "message": "Late fee applied successfully",
        "rent_record": record.serialize()
    }), 200


@bp.post("/rent/mark-overdue")
@manager_required
def mark_overdue():
    updated = get_ledger().mark_overdue(g.manager.id, _as_of())
    return jsonify({
        "updated_count": len(updated),
        "rent_records": [record.serialize() for record in updated]
    }), 200
