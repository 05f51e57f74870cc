"""
Admin Log Model

FLOW OVERVIEW
- AdminLog: audit trail of administrator actions.
- record(admin_id, action, target_table, target_id, details): add an entry to the
  current session; the caller's commit persists it with the action itself.
"""

from datetime import datetime
from .database import db
from .utils import isoformat


class AdminLog(db.Model):
    """Audit entry for an admin action"""
    __tablename__ = 'admin_logs'

    id = db.Column(db.Integer, primary_key=True)
    admin_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    action = db.Column(db.String(100), nullable=False)
    target_table = db.Column(db.String(50))
    target_id = db.Column(db.Integer)
    details = db.Column(db.JSON)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    admin = db.relationship('User')

    def to_dict(self):
        return {
            'id': self.id,
            'adminId': self.admin_id,
            'adminUsername': self.admin.username if self.admin else None,
            'action': self.action,
            'targetTable': self.target_table,
            'targetId': self.target_id,
            'details': self.details,
            'createdAt': isoformat(self.created_at),
        }

    @classmethod
    def record(cls, admin_id, action, target_table=None, target_id=None, details=None):
        entry = cls(admin_id=admin_id, action=action, target_table=target_table,
                    target_id=target_id, details=details)
        db.session.add(entry)
        return entry

    @classmethod
    def recent(cls, limit=100):
        return cls.query.order_by(cls.created_at.desc(), cls.id.desc()).limit(limit).all()
