import io
from datetime import datetime

from flask import Blueprint, Response, g, jsonify, request, send_file

from ..errors import NotFoundError
from ..security import manager_required
from ..services import get_ledger, get_notice_engine, render_notice
from ..utils.parsing import parse_instant
from ..utils.pdf import notice_pdf

bp = Blueprint("notices", __name__)


@bp.get("/notices")
@manager_required
def list_notices():
    notices = get_notice_engine().list_notices(g.manager.id, status=request.args.get("status"))
    return jsonify({
        "count": len(notices),
        "notices": [notice.serialize() for notice in notices]
    }), 200


@bp.post("/notices")
@manager_required
def generate_notice():
    """Generate a pay-or-quit notice for a ledger record or a projected month"""
    data = request.get_json(silent=True) or {}

    for field in ("tenant_id", "amount_owed"):
        if data.get(field) is None:
            return jsonify({
                "error": "validation_error",
                "message": f"{field} is required"
            }), 400

    ledger = get_ledger()
    engine = get_notice_engine(ledger)

    if data.get("rent_record_id") is not None:
        ref = data["rent_record_id"]
    elif data.get("period"):
        ref = ledger.project(g.manager.id, data["tenant_id"], data["period"])
    else:
        return jsonify({
            "error": "validation_error",
            "message": "rent_record_id or period is required"
        }), 400

    notice = engine.generate_notice(
        g.manager.id,
        data["tenant_id"],
        ref,
        data["amount_owed"],
        days_to_pay=data.get("days_to_pay"),
        jurisdiction=data.get("jurisdiction"),
    )
    return jsonify(notice.serialize()), 201


@bp.post("/notices/<int:notice_id>/actions")
@manager_required
def record_delivery_action(notice_id):
    data = request.get_json(silent=True) or {}
    notice = get_notice_engine().record_delivery_action(notice_id, data.get("action"), manager_id=g.manager.id)
    if notice is None:
        # Audit trail is best-effort; nothing to report back
        return jsonify({"recorded": False}), 202
    return jsonify({"recorded": True, "notice": notice.serialize()}), 200


@bp.post("/notices/<int:notice_id>/resolve")
@manager_required
def resolve_notice(notice_id):
    notice = get_notice_engine().resolve_notice(notice_id, manager_id=g.manager.id)
    return jsonify(notice.serialize()), 200


@bp.post("/notices/expire")
@manager_required
def expire_notices():
    raw = request.args.get("as_of")
    as_of = parse_instant(raw) if raw else datetime.now()
    expired = get_notice_engine().expire_notices(g.manager.id, as_of)
    return jsonify({
        "expired_count": len(expired),
        "notices": [notice.serialize() for notice in expired]
    }), 200


def _rendered(notice_id):
    notice = get_notice_engine().get_notice(notice_id, g.manager.id)
    if notice.tenant is None or notice.rent_record is None:
        raise NotFoundError(f"Notice {notice_id} refers to a missing tenant or rent record")
    return notice, render_notice(notice, notice.tenant, notice.manager, notice.rent_record)


@bp.get("/notices/<int:notice_id>/document")
@manager_required
def notice_document(notice_id):
    _, text = _rendered(notice_id)
    return Response(text, mimetype="text/plain; charset=utf-8")


@bp.get("/notices/<int:notice_id>/pdf")
@manager_required
def notice_pdf_download(notice_id):
    notice, text = _rendered(notice_id)
    get_notice_engine().record_delivery_action(notice.id, "downloaded", manager_id=g.manager.id)
    return send_file(
        io.BytesIO(notice_pdf(text)),
        mimetype="application/pdf",
        as_attachment=True,
        download_name=f"pay_or_quit_notice_{notice.id}.pdf",
    )
