from __future__ import annotations

from ..extensions import db
from retailpos.time_utils import to_utc_z, utcnow


class BusinessSettings(db.Model):
    """
    Per-user business profile and receipt text (singleton per user).

    Created with defaults on first read; see services/settings_service.py.
    """
    __tablename__ = "business_settings"
    __table_args__ = (
        db.UniqueConstraint("user_id", name="uq_business_settings_user"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)

    # Business block
    name = db.Column(db.String(255), nullable=True)
    tax_id = db.Column(db.String(64), nullable=True)
    address = db.Column(db.Text, nullable=True)
    phone = db.Column(db.String(64), nullable=True)
    email = db.Column(db.String(255), nullable=True)
    website = db.Column(db.String(255), nullable=True)
    business_hours = db.Column(db.String(255), nullable=True)

    # POS block
    receipt_header = db.Column(db.Text, nullable=True)
    receipt_footer = db.Column(db.Text, nullable=False, default="Thank you for your business!")

    version_id = db.Column(db.Integer, nullable=False, default=1)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "business": {
                "name": self.name,
                "tax_id": self.tax_id,
                "address": self.address,
                "phone": self.phone,
                "email": self.email,
                "website": self.website,
                "business_hours": self.business_hours,
            },
            "pos": {
                "receipt_header": self.receipt_header,
                "receipt_footer": self.receipt_footer,
            },
            "updated_at": to_utc_z(self.updated_at),
        }
