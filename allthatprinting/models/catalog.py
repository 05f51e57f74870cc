"""
Catalog Models

FLOW OVERVIEW
- Category: top-level product grouping shown in the storefront menu.
- Product: a printable good; seller products need admin approval before listing.
  • listable(): active and approved products, the only ones shoppers see.
- ProductReview: 1-5 star rating with comment.
- ProductLike / Favorite: one row per (user, product), enforced by unique constraints.
"""

from datetime import datetime
from .database import db
from .utils import isoformat


class Category(db.Model):
    """Product category"""
    __tablename__ = 'categories'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    name_ko = db.Column(db.String(100), nullable=False)
    description = db.Column(db.Text)
    description_ko = db.Column(db.Text)
    image_url = db.Column(db.String(500))
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    products = db.relationship('Product', backref='category', lazy=True)

    def __repr__(self):
        return f'<Category {self.name}>'

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'nameKo': self.name_ko,
            'description': self.description,
            'descriptionKo': self.description_ko,
            'imageUrl': self.image_url,
            'isActive': self.is_active,
            'createdAt': isoformat(self.created_at),
        }


class Product(db.Model):
    """Product sold in the storefront. Prices are whole won."""
    __tablename__ = 'products'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    name_ko = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    description_ko = db.Column(db.Text)
    base_price = db.Column(db.Integer, nullable=False)
    category_id = db.Column(db.Integer, db.ForeignKey('categories.id'), nullable=False)
    seller_id = db.Column(db.Integer, db.ForeignKey('sellers.id'))
    image_url = db.Column(db.String(500))
    stock = db.Column(db.Integer, default=0, nullable=False)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    is_featured = db.Column(db.Boolean, default=False, nullable=False)
    is_approved = db.Column(db.Boolean, default=True, nullable=False)
    approval_date = db.Column(db.DateTime)
    tags = db.Column(db.JSON, default=list)
    customization_options = db.Column(db.JSON)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    reviews = db.relationship('ProductReview', backref='product', lazy=True,
                              cascade='all, delete-orphan')
    likes = db.relationship('ProductLike', backref='product', lazy=True,
                            cascade='all, delete-orphan')

    # Fields a product form may set, mapped from their JSON names
    EDITABLE_FIELDS = {
        'name': 'name',
        'nameKo': 'name_ko',
        'name_ko': 'name_ko',
        'description': 'description',
        'descriptionKo': 'description_ko',
        'description_ko': 'description_ko',
        'basePrice': 'base_price',
        'base_price': 'base_price',
        'categoryId': 'category_id',
        'category_id': 'category_id',
        'imageUrl': 'image_url',
        'image_url': 'image_url',
        'stock': 'stock',
        'isActive': 'is_active',
        'is_active': 'is_active',
        'isFeatured': 'is_featured',
        'is_featured': 'is_featured',
        'tags': 'tags',
        'customizationOptions': 'customization_options',
        'customization_options': 'customization_options',
    }

    def __repr__(self):
        return f'<Product {self.name}>'

    @classmethod
    def listable(cls):
        """Query of products visible to shoppers."""
        return cls.query.filter(cls.is_active.is_(True), cls.is_approved.is_(True))

    def apply_fields(self, data):
        """Copy recognised JSON fields onto the product."""
        for key, attr in self.EDITABLE_FIELDS.items():
            if key in data:
                setattr(self, attr, data[key])

    def summary(self):
        """Short form embedded in cart, order and review payloads."""
        return {
            'id': self.id,
            'name': self.name,
            'nameKo': self.name_ko,
            'basePrice': self.base_price,
            'imageUrl': self.image_url,
            'stock': self.stock,
            'isActive': self.is_active,
        }

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'nameKo': self.name_ko,
            'description': self.description,
            'descriptionKo': self.description_ko,
            'basePrice': self.base_price,
            'categoryId': self.category_id,
            'sellerId': self.seller_id,
            'imageUrl': self.image_url,
            'stock': self.stock,
            'isActive': self.is_active,
            'isFeatured': self.is_featured,
            'isApproved': self.is_approved,
            'approvalDate': isoformat(self.approval_date),
            'tags': self.tags or [],
            'customizationOptions': self.customization_options,
            'createdAt': isoformat(self.created_at),
            'updatedAt': isoformat(self.updated_at),
        }


class ProductReview(db.Model):
    """Customer review of a product"""
    __tablename__ = 'product_reviews'

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey('products.id'), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    rating = db.Column(db.Integer, nullable=False)
    comment = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    user = db.relationship('User', backref=db.backref('reviews', lazy=True))

    def to_dict(self):
        return {
            'id': self.id,
            'productId': self.product_id,
            'userId': self.user_id,
            'username': self.user.username if self.user else None,
            'rating': self.rating,
            'comment': self.comment,
            'createdAt': isoformat(self.created_at),
        }


class ProductLike(db.Model):
    """A user's like on a product"""
    __tablename__ = 'product_likes'

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey('products.id'), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    __table_args__ = (db.UniqueConstraint('user_id', 'product_id', name='unique_user_product_like'),)

    def to_dict(self):
        return {
            'id': self.id,
            'productId': self.product_id,
            'userId': self.user_id,
            'createdAt': isoformat(self.created_at),
        }


class Favorite(db.Model):
    """Wishlist entry"""
    __tablename__ = 'favorites'

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey('products.id'), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    product = db.relationship('Product')

    __table_args__ = (db.UniqueConstraint('user_id', 'product_id', name='unique_user_favorite'),)

    def to_dict(self):
        return {
            'id': self.id,
            'productId': self.product_id,
            'userId': self.user_id,
            'product': self.product.summary() if self.product else None,
            'createdAt': isoformat(self.created_at),
        }

    @classmethod
    def toggle(cls, user_id, product_id):
        """Add or remove a favorite. Returns True when the product is now a favorite."""
        existing = cls.query.filter_by(user_id=user_id, product_id=product_id).first()
        if existing:
            db.session.delete(existing)
            db.session.commit()
            return False
        db.session.add(cls(user_id=user_id, product_id=product_id))
        db.session.commit()
        return True
