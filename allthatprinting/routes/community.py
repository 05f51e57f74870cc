"""
Community Routes

FLOW OVERVIEW
- /api/community/posts [GET, POST]
  • Board listing (optional ?board=) and post creation.
- /api/community/posts/<id> [GET, DELETE], /api/community/posts/user/<uid> [GET]
- /api/community/posts/<id>/like [POST]
  • Increment like counter; the author is notified.
- /api/community/posts/<id>/comments [GET, POST]
  • Comment tree (or ?flat=1 list); new comments notify the post author and, for
    replies, the parent comment author.
- /api/community/posts/<pid>/comments/<cid> [DELETE]
  • Owner/admin only; replies go with their parent.
- /api/design-shares, /api/events, /api/resources, /api/qna [GET]
  • Board shortcuts.
"""

from flask import Blueprint, jsonify, request, g

from ..models import db, CommunityPost, CommunityComment, Product
from ..models.community import BOARDS
from ..utils.api_utils import request_validator, pick, parse_bool, get_or_404, require_id
from ..utils.auth_utils import token_required
from ..utils.comment_tree import build_comment_tree
from ..utils.error_handlers import APIError
from ..utils.notifications import notify_new_comment, notify_reply, notify_post_like
from ..utils.validators import sanitize_input

community_bp = Blueprint('community', __name__)

BOARD_SHORTCUTS = {
    'design-shares': 'design_share',
    'events': 'event',
    'resources': 'resource',
    'qna': 'qna',
}


def _list_posts(board=None):
    query = CommunityPost.query
    if board:
        query = query.filter_by(board=board)
    posts = query.order_by(CommunityPost.created_at.desc(), CommunityPost.id.desc()).all()
    return jsonify([post.to_dict() for post in posts])


@community_bp.route('/community/posts')
def list_posts():
    board = request.args.get('board')
    if board and board not in BOARDS:
        raise APIError('존재하지 않는 게시판입니다.', 400, 'INVALID_BOARD')
    return _list_posts(board)


@community_bp.route('/<any("design-shares", events, resources, qna):shortcut>')
def list_board(shortcut):
    return _list_posts(BOARD_SHORTCUTS[shortcut])


@community_bp.route('/community/posts/<int:post_id>')
def get_post(post_id):
    post = get_or_404(CommunityPost, post_id, '게시물을 찾을 수 없습니다.')
    return jsonify(post.to_dict())


@community_bp.route('/community/posts/user/<int:user_id>')
def list_user_posts(user_id):
    posts = CommunityPost.query.filter_by(user_id=user_id) \
        .order_by(CommunityPost.created_at.desc(), CommunityPost.id.desc()).all()
    return jsonify([post.to_dict() for post in posts])


@community_bp.route('/community/posts', methods=['POST'])
@token_required
def create_post():
    data = request_validator.parse_json_body()
    title = sanitize_input(data.get('title', ''), 200)
    if not title:
        raise APIError('제목을 입력해주세요.', 400, 'MISSING_FIELDS')
    board = data.get('board') or 'free'
    if board not in BOARDS:
        raise APIError('존재하지 않는 게시판입니다.', 400, 'INVALID_BOARD')
    product_id = None
    if pick(data, 'product_id', 'productId') is not None:
        product_id = require_id(data, 'product_id', 'productId', message='상품 ID가 올바르지 않습니다.')
        get_or_404(Product, product_id, '상품을 찾을 수 없습니다.')

    post = CommunityPost(
        user_id=g.current_user.id,
        board=board,
        title=title,
        description=sanitize_input(data.get('description', ''), 10000) or None,
        image_url=pick(data, 'image_url', 'imageUrl'),
        product_id=product_id,
    )
    db.session.add(post)
    db.session.commit()
    return jsonify(post.to_dict()), 201


@community_bp.route('/community/posts/<int:post_id>', methods=['DELETE'])
@token_required
def delete_post(post_id):
    post = get_or_404(CommunityPost, post_id, '게시물을 찾을 수 없습니다.')
    if post.user_id != g.current_user.id and not g.current_user.is_administrator:
        raise APIError('본인의 게시물만 삭제할 수 있습니다.', 403)
    db.session.delete(post)
    db.session.commit()
    return jsonify({'message': '게시물이 삭제되었습니다.'})


@community_bp.route('/community/posts/<int:post_id>/like', methods=['POST'])
@token_required
def like_post(post_id):
    post = get_or_404(CommunityPost, post_id, '게시물을 찾을 수 없습니다.')
    post.likes = CommunityPost.likes + 1
    notify_post_like(post, g.current_user)
    db.session.commit()
    return jsonify(post.to_dict())


@community_bp.route('/community/posts/<int:post_id>/comments')
def list_comments(post_id):
    get_or_404(CommunityPost, post_id, '게시물을 찾을 수 없습니다.')
    comments = CommunityComment.query.filter_by(post_id=post_id).all()
    if parse_bool(request.args.get('flat')):
        ordered = sorted(comments, key=lambda c: (c.created_at, c.id))
        return jsonify([comment.to_dict() for comment in ordered])
    return jsonify(build_comment_tree(comments))


@community_bp.route('/community/posts/<int:post_id>/comments', methods=['POST'])
@token_required
def create_comment(post_id):
    post = get_or_404(CommunityPost, post_id, '게시물을 찾을 수 없습니다.')
    data = request_validator.parse_json_body()
    text = sanitize_input(pick(data, 'comment', 'content', default=''), 2000)
    if not text:
        raise APIError('댓글 내용을 입력해주세요.', 400, 'MISSING_FIELDS')

    parent = None
    if pick(data, 'parent_id', 'parentId') is not None:
        parent_id = require_id(data, 'parent_id', 'parentId', message='답글을 달 댓글을 찾을 수 없습니다.')
        parent = db.session.get(CommunityComment, parent_id)
        if parent is None or parent.post_id != post.id:
            raise APIError('답글을 달 댓글을 찾을 수 없습니다.', 400, 'INVALID_PARENT')

    comment = CommunityComment(post_id=post.id, user_id=g.current_user.id,
                               parent_id=parent.id if parent else None, comment=text)
    db.session.add(comment)
    notify_new_comment(post, g.current_user)
    if parent is not None:
        notify_reply(parent, g.current_user, post)
    db.session.commit()
    return jsonify(comment.to_dict()), 201


@community_bp.route('/community/posts/<int:post_id>/comments/<int:comment_id>', methods=['DELETE'])
@token_required
def delete_comment(post_id, comment_id):
    comment = CommunityComment.query.filter_by(id=comment_id, post_id=post_id).first()
    if comment is None:
        raise APIError('댓글을 찾을 수 없습니다.', 404)
    if comment.user_id != g.current_user.id and not g.current_user.is_administrator:
        raise APIError('본인의 댓글만 삭제할 수 있습니다.', 403)
    db.session.delete(comment)
    db.session.commit()
    return jsonify({'message': '댓글이 삭제되었습니다.'})
