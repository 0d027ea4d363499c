"""
User model for marketplace principals (customers, vendors, admins)
"""
import uuid
from datetime import datetime
from extensions import db


ROLE_CUSTOMER = 'customer'
ROLE_VENDOR = 'vendor'
ROLE_ADMIN = 'admin'
ROLES = (ROLE_CUSTOMER, ROLE_VENDOR, ROLE_ADMIN)


class User(db.Model):
    """Marketplace account. Credentials live with the identity provider."""
    __tablename__ = 'users'

    id = db.Column(db.String(32), primary_key=True, default=lambda: uuid.uuid4().hex)

    # Role: 'customer', 'vendor' or 'admin'
    role = db.Column(db.String(20), nullable=False, default=ROLE_CUSTOMER, index=True)

    # Profile
    name = db.Column(db.String(100), nullable=False)
    business_name = db.Column(db.String(150), nullable=True)  # vendors only
    email = db.Column(db.String(150), unique=True, nullable=True, index=True)
    phone = db.Column(db.String(20), nullable=True)

    # Status
    is_active = db.Column(db.Boolean, default=True)

    # Timestamps
    created_at = db.Column(db.DateTime, default=datetime.now)
    updated_at = db.Column(db.DateTime, default=datetime.now, onupdate=datetime.now)

    @property
    def display_name(self):
        """Business name for vendors, personal name otherwise"""
        if self.role == ROLE_VENDOR and self.business_name:
            return self.business_name
        return self.name

    def customer_summary(self) -> dict:
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'phone': self.phone,
        }

    def vendor_summary(self) -> dict:
        return {
            'id': self.id,
            'businessName': self.business_name or self.name,
            'email': self.email,
            'phone': self.phone,
        }

    def to_dict(self):
        """Convert to dictionary"""
        return {
            'id': self.id,
            'role': self.role,
            'name': self.name,
            'businessName': self.business_name,
            'displayName': self.display_name,
            'email': self.email,
            'phone': self.phone,
            'isActive': self.is_active,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f'<User {self.id} ({self.role})>'


class ActivityLog(db.Model):
    """Activity log for audit trail"""
    __tablename__ = 'activity_logs'

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    user_id = db.Column(db.String(32), db.ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    action = db.Column(db.String(100), nullable=False)
    entity_type = db.Column(db.String(50), nullable=True)
    entity_id = db.Column(db.String(32), nullable=True, index=True)
    details = db.Column(db.JSON, nullable=True)
    ip_address = db.Column(db.String(45), nullable=True)
    user_agent = db.Column(db.String(255), nullable=True)

    # Timestamps
    created_at = db.Column(db.DateTime, default=datetime.now)

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'action': self.action,
            'entity_type': self.entity_type,
            'entity_id': self.entity_id,
            'details': self.details,
            'ip_address': self.ip_address,
            'user_agent': self.user_agent,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f'<ActivityLog {self.action}>'
