from flask import current_app

from ..extensions import db
from ..persistence import Repository
from .ledger import Persisted, Projected, RentLedger, due_date_for
from .notices import NoticeEngine, render_notice


def get_ledger():
    """Ledger bound to the request's database session."""
    return RentLedger(Repository(db.session), late_fee_amount=current_app.config["LATE_FEE_AMOUNT"])


def get_notice_engine(ledger=None):
    ledger = ledger or get_ledger()
    return NoticeEngine(
        ledger.repo,
        ledger,
        default_jurisdiction=current_app.config["DEFAULT_JURISDICTION"],
        allow_multiple_active_notices=current_app.config["ALLOW_MULTIPLE_ACTIVE_NOTICES"],
    )
