"""
Community Models

FLOW OVERVIEW
- CommunityPost: a post on one of the community boards (free talk, design share,
  events, resources, Q&A).
- CommunityComment: a comment; `parent_id` makes it a reply, forming a tree per post.
"""

from datetime import datetime
from .database import db
from .utils import isoformat

BOARDS = ('free', 'design_share', 'event', 'resource', 'qna')


class CommunityPost(db.Model):
    """Community board post"""
    __tablename__ = 'community_posts'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    board = db.Column(db.String(20), default='free', nullable=False)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    image_url = db.Column(db.String(500))
    likes = db.Column(db.Integer, default=0, nullable=False)
    product_id = db.Column(db.Integer, db.ForeignKey('products.id'))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    user = db.relationship('User', backref=db.backref('posts', lazy=True))
    comments = db.relationship('CommunityComment', backref='post', lazy=True,
                               cascade='all, delete-orphan')

    def to_dict(self):
        return {
            'id': self.id,
            'userId': self.user_id,
            'username': self.user.username if self.user else None,
            'board': self.board,
            'title': self.title,
            'description': self.description,
            'imageUrl': self.image_url,
            'likes': self.likes,
            'productId': self.product_id,
            'commentCount': len(self.comments),
            'createdAt': isoformat(self.created_at),
        }


class CommunityComment(db.Model):
    """Comment or reply on a post"""
    __tablename__ = 'community_comments'

    id = db.Column(db.Integer, primary_key=True)
    post_id = db.Column(db.Integer, db.ForeignKey('community_posts.id'), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    parent_id = db.Column(db.Integer, db.ForeignKey('community_comments.id'))
    comment = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    user = db.relationship('User')
    replies = db.relationship('CommunityComment', cascade='all, delete-orphan',
                              backref=db.backref('parent', remote_side=[id]))

    def to_dict(self):
        return {
            'id': self.id,
            'postId': self.post_id,
            'userId': self.user_id,
            'username': self.user.username if self.user else None,
            'parentId': self.parent_id,
            'comment': self.comment,
            'createdAt': isoformat(self.created_at),
        }
