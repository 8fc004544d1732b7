from datetime import datetime

from . import db


class PropertyManager(db.Model):
    __tablename__ = "property_managers"

    id = db.Column(db.Integer, primary_key=True)
    # Identity issued by the auth service; carried as the JWT subject
    user_id = db.Column(db.String(64), nullable=False, unique=True, index=True)
    name = db.Column(db.String(200), nullable=False)
    email = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(20), nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    tenants = db.relationship("Tenant", back_populates="manager", lazy=True)

    def __repr__(self):
        return f"<PropertyManager {self.id}: {self.name}>"
