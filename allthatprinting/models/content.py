"""
Content Models

FLOW OVERVIEW
- BelugaTemplate: downloadable design templates, ordered by `sort_order`.
- GoodsEditorDesign: a user's saved design from the goods editor, attachable to order lines.
- Inquiry: 1:1 customer question, answered by an admin.
"""

from datetime import datetime
from .database import db
from .utils import isoformat


class BelugaTemplate(db.Model):
    """Design template offered for download"""
    __tablename__ = 'beluga_templates'

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    title_ko = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    description_ko = db.Column(db.Text)
    size = db.Column(db.String(50))
    format = db.Column(db.String(20))
    downloads = db.Column(db.Integer, default=0, nullable=False)
    tags = db.Column(db.JSON, default=list)
    status = db.Column(db.String(20), default='normal')  # hot, new, normal
    image_url = db.Column(db.String(500))
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    sort_order = db.Column(db.Integer, default=0, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    EDITABLE_FIELDS = {
        'title': 'title',
        'titleKo': 'title_ko',
        'description': 'description',
        'descriptionKo': 'description_ko',
        'size': 'size',
        'format': 'format',
        'tags': 'tags',
        'status': 'status',
        'imageUrl': 'image_url',
        'isActive': 'is_active',
        'sortOrder': 'sort_order',
    }

    def apply_fields(self, data):
        for key, attr in self.EDITABLE_FIELDS.items():
            if key in data:
                setattr(self, attr, data[key])

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'titleKo': self.title_ko,
            'description': self.description,
            'descriptionKo': self.description_ko,
            'size': self.size,
            'format': self.format,
            'downloads': self.downloads,
            'tags': self.tags or [],
            'status': self.status,
            'imageUrl': self.image_url,
            'isActive': self.is_active,
            'sortOrder': self.sort_order,
            'createdAt': isoformat(self.created_at),
            'updatedAt': isoformat(self.updated_at),
        }


class GoodsEditorDesign(db.Model):
    """Design saved from the goods editor"""
    __tablename__ = 'goods_editor_designs'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    product_type = db.Column(db.String(50))
    canvas_data = db.Column(db.JSON)
    thumbnail_url = db.Column(db.String(500))
    status = db.Column(db.String(20), default='draft', nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    EDITABLE_FIELDS = {
        'title': 'title',
        'productType': 'product_type',
        'canvasData': 'canvas_data',
        'thumbnailUrl': 'thumbnail_url',
        'status': 'status',
    }

    def apply_fields(self, data):
        for key, attr in self.EDITABLE_FIELDS.items():
            if key in data:
                setattr(self, attr, data[key])

    def to_dict(self):
        return {
            'id': self.id,
            'userId': self.user_id,
            'title': self.title,
            'productType': self.product_type,
            'canvasData': self.canvas_data,
            'thumbnailUrl': self.thumbnail_url,
            'status': self.status,
            'createdAt': isoformat(self.created_at),
            'updatedAt': isoformat(self.updated_at),
        }


class Inquiry(db.Model):
    """Customer inquiry"""
    __tablename__ = 'inquiries'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    category = db.Column(db.String(50), default='general')
    title = db.Column(db.String(200), nullable=False)
    content = db.Column(db.Text, nullable=False)
    status = db.Column(db.String(20), default='pending', nullable=False)  # pending, answered
    answer = db.Column(db.Text)
    answered_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    user = db.relationship('User')

    def to_dict(self):
        return {
            'id': self.id,
            'userId': self.user_id,
            'username': self.user.username if self.user else None,
            'category': self.category,
            'title': self.title,
            'content': self.content,
            'status': self.status,
            'answer': self.answer,
            'answeredAt': isoformat(self.answered_at),
            'createdAt': isoformat(self.created_at),
        }
