from datetime import datetime

from . import db


class Tenant(db.Model):
    __tablename__ = "tenants"

    id = db.Column(db.Integer, primary_key=True)
    property_manager_id = db.Column(
        db.Integer, db.ForeignKey("property_managers.id"), nullable=False, index=True
    )

    # Contact (at least one of email/phone is recommended, neither is required)
    name = db.Column(db.String(200), nullable=False)
    email = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(20), nullable=True)

    # Premises
    property_address = db.Column(db.String(512), nullable=False)
    unit_number = db.Column(db.String(32), nullable=True)

    # Lease terms
    rent_amount = db.Column(db.Numeric(10, 2), nullable=False)
    rent_due_date = db.Column(db.Integer, nullable=False, default=1)  # day of month, 1-31
    lease_start_date = db.Column(db.Date, nullable=True)
    lease_end_date = db.Column(db.Date, nullable=True)
    security_deposit = db.Column(db.Numeric(10, 2), nullable=True)

    # Metadata
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    notes = db.Column(db.Text, nullable=True)

    # Relationships
    manager = db.relationship("PropertyManager", back_populates="tenants")
    rent_records = db.relationship(
        "RentRecord", back_populates="tenant", lazy=True,
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<Tenant {self.id}: {self.name}>"

    def display_fields(self):
        """Denormalized fields carried on ledger views."""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "property_address": self.property_address,
            "unit_number": self.unit_number,
            "rent_amount": float(self.rent_amount),
        }
