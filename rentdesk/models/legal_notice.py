from datetime import datetime

from dateutil.relativedelta import relativedelta

from . import db

# Ordered: a notice only ever moves to a later rank
NOTICE_STATUSES = ("generated", "served", "resolved", "expired")
ACTIVE_NOTICE_STATUSES = ("generated", "served")
DELIVERY_ACTIONS = ("generated", "downloaded", "sent")


class LegalNotice(db.Model):
    __tablename__ = "legal_notices"

    id = db.Column(db.Integer, primary_key=True)

    # Foreign Keys
    property_manager_id = db.Column(
        db.Integer, db.ForeignKey("property_managers.id"), nullable=False, index=True
    )
    tenant_id = db.Column(db.Integer, db.ForeignKey("tenants.id"), nullable=False, index=True)
    rent_record_id = db.Column(db.Integer, db.ForeignKey("rent_records.id"), nullable=False, index=True)

    # Demand
    notice_type = db.Column(db.String(32), nullable=False, default="pay_or_quit")
    jurisdiction = db.Column(db.String(8), nullable=False)
    amount_owed = db.Column(db.Numeric(10, 2), nullable=False)
    days_to_pay = db.Column(db.Integer, nullable=False)

    # Lifecycle
    generated_date = db.Column(db.Date, nullable=False)
    served_date = db.Column(db.Date, nullable=True)
    status = db.Column(db.String(20), nullable=False, default="generated", index=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    tenant = db.relationship("Tenant")
    rent_record = db.relationship("RentRecord")
    manager = db.relationship("PropertyManager")
    events = db.relationship(
        "NoticeEvent", back_populates="notice", lazy=True, order_by="NoticeEvent.id"
    )

    def __repr__(self):
        return f"<LegalNotice {self.id}: {self.notice_type} ${self.amount_owed} [{self.status}]>"

    @property
    def deadline(self):
        """Last day of the cure period, counted in calendar days."""
        return self.generated_date + relativedelta(days=self.days_to_pay)

    @property
    def is_active(self):
        return self.status in ACTIVE_NOTICE_STATUSES

    def serialize(self):
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "rent_record_id": self.rent_record_id,
            "property_manager_id": self.property_manager_id,
            "notice_type": self.notice_type,
            "jurisdiction": self.jurisdiction,
            "amount_owed": float(self.amount_owed),
            "days_to_pay": self.days_to_pay,
            "generated_date": self.generated_date.isoformat(),
            "served_date": self.served_date.isoformat() if self.served_date else None,
            "deadline": self.deadline.isoformat(),
            "status": self.status,
            "tenant": self.tenant.display_fields() if self.tenant else None,
            "events": [event.serialize() for event in self.events],
        }


class NoticeEvent(db.Model):
    """Append-only delivery audit trail for a notice."""

    __tablename__ = "notice_events"

    id = db.Column(db.Integer, primary_key=True)
    notice_id = db.Column(db.Integer, db.ForeignKey("legal_notices.id"), nullable=False, index=True)
    action = db.Column(db.String(20), nullable=False)  # generated, downloaded, sent
    occurred_on = db.Column(db.Date, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    notice = db.relationship("LegalNotice", back_populates="events")

    def serialize(self):
        return {
            "id": self.id,
            "notice_id": self.notice_id,
            "action": self.action,
            "occurred_on": self.occurred_on.isoformat(),
        }
