from datetime import datetime
from decimal import Decimal

from sqlalchemy.orm import validates

from . import db

RENT_STATUSES = ("pending", "partial", "paid", "overdue")


def period_of(day):
    """Calendar month key ("YYYY-MM") a due date belongs to."""
    return day.strftime("%Y-%m")


class RentRecord(db.Model):
    __tablename__ = "rent_records"
    # One persisted obligation per tenant per calendar month
    __table_args__ = (db.UniqueConstraint("tenant_id", "period", name="uq_rent_records_tenant_period"),)

    id = db.Column(db.Integer, primary_key=True)

    # Foreign Keys
    property_manager_id = db.Column(
        db.Integer, db.ForeignKey("property_managers.id"), nullable=False, index=True
    )
    tenant_id = db.Column(
        db.Integer, db.ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True
    )

    # Dates
    due_date = db.Column(db.Date, nullable=False)
    period = db.Column(db.String(7), nullable=False)
    paid_date = db.Column(db.Date, nullable=True)

    # Financial details
    amount_due = db.Column(db.Numeric(10, 2), nullable=False)
    amount_paid = db.Column(db.Numeric(10, 2), nullable=False, default=Decimal("0"))
    late_fees = db.Column(db.Numeric(10, 2), nullable=False, default=Decimal("0"))

    # Status tracking
    status = db.Column(db.String(20), nullable=False, default="pending", index=True)  # pending, partial, paid, overdue
    payment_method = db.Column(db.String(50), nullable=True)

    # Metadata
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    notes = db.Column(db.Text, nullable=True)

    tenant = db.relationship("Tenant", back_populates="rent_records")

    def __repr__(self):
        return f"<RentRecord {self.id}: Tenant {self.tenant_id}, ${self.amount_due}, Due {self.due_date}>"

    @validates("due_date")
    def _track_period(self, key, value):
        self.period = period_of(value)
        return value

    @property
    def total_due(self):
        return (self.amount_due or Decimal("0")) + (self.late_fees or Decimal("0"))

    @property
    def balance(self):
        """Outstanding amount including late fees, never negative."""
        remaining = self.total_due - (self.amount_paid or Decimal("0"))
        return max(remaining, Decimal("0"))

    @property
    def is_paid(self):
        return self.status == "paid"

    def serialize(self):
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "property_manager_id": self.property_manager_id,
            "due_date": self.due_date.isoformat(),
            "period": self.period,
            "amount_due": float(self.amount_due),
            "amount_paid": float(self.amount_paid or 0),
            "late_fees": float(self.late_fees or 0),
            "balance": float(self.balance),
            "status": self.status,
            "paid_date": self.paid_date.isoformat() if self.paid_date else None,
            "payment_method": self.payment_method,
            "notes": self.notes,
            "tenant": self.tenant.display_fields() if self.tenant else None,
        }
