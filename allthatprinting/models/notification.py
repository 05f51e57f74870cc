"""
Notification Model
"""

from datetime import datetime
from .database import db
from .utils import isoformat


class Notification(db.Model):
    """In-app notification for a user"""
    __tablename__ = 'notifications'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    type = db.Column(db.String(30), default='system', nullable=False)  # comment, like, order, refund, announcement ...
    title = db.Column(db.String(200), nullable=False)
    message = db.Column(db.Text, nullable=False)
    is_read = db.Column(db.Boolean, default=False, nullable=False)
    related_id = db.Column(db.Integer)
    related_type = db.Column(db.String(30))
    related_url = db.Column(db.String(500))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'userId': self.user_id,
            'type': self.type,
            'title': self.title,
            'message': self.message,
            'isRead': self.is_read,
            'relatedId': self.related_id,
            'relatedType': self.related_type,
            'relatedUrl': self.related_url,
            'createdAt': isoformat(self.created_at),
        }

    @classmethod
    def unread_count(cls, user_id):
        return cls.query.filter_by(user_id=user_id, is_read=False).count()
