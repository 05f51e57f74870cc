"""
Catalog Routes

FLOW OVERVIEW
- /api/categories [GET], /api/categories/<id> [GET]
  • Active categories.
- /api/products [GET]
  • Listable products filtered by category / featured / search, enriched with review,
    like and stock flags.
- /api/products/search [GET]
  • Text, category list, price, price range and featured filters plus sorting.
- /api/products/<id>, /api/product/<id> [GET]
  • Product detail.
- /api/products [POST], /api/products/<id> [PUT, DELETE]
  • Admin product management.
- /api/collections[/<collection>[/<subcategory>]] [GET]
  • Keyword classified collection pages.
- /api/products/<id>/reviews [GET, POST], /api/products/<id>/like [POST, DELETE],
  /api/products/<id>/liked [GET]
- /api/favorites/user/<uid> [GET], /api/favorites/toggle [POST],
  /api/wishlist/<uid> [GET], /api/wishlist [POST], /api/wishlist/<uid>/<pid> [DELETE]
"""

from flask import Blueprint, jsonify, request, current_app, g
from sqlalchemy.exc import IntegrityError

from ..models import db, Category, Product, ProductReview, ProductLike, Favorite, CartItem, OrderItem
from ..models.admin_log import AdminLog
from ..utils.api_utils import request_validator, pick, parse_bool, get_or_404, require_id
from ..utils.auth_utils import token_required, admin_required, ensure_self_or_admin, get_optional_user
from ..utils.catalog_filters import (
    COLLECTIONS, filter_collection, enrich_products, product_stats, search_products, parse_category_ids,
)
from ..utils.error_handlers import APIError
from ..utils.validators import InputValidator, validate_price, validate_rating, sanitize_input

catalog_bp = Blueprint('catalog', __name__)

REQUIRED_PRODUCT_FIELDS = {
    'name': 'name',
    'nameKo': 'name_ko',
    'basePrice': 'base_price',
    'categoryId': 'category_id',
}


def apply_product_payload(product, data, partial=False):
    """
    Validate a product form and copy it onto `product`.

    Args:
        product: Product being created or edited
        data: request JSON (camelCase or snake_case keys)
        partial: True for edits, where omitted fields keep their value
    """
    if not partial:
        missing = [name for name, snake in REQUIRED_PRODUCT_FIELDS.items()
                   if pick(data, name, snake) in (None, '')]
        if missing:
            raise APIError(f"필수 항목이 누락되었습니다: {', '.join(missing)}", 400, 'MISSING_FIELDS')

    price = pick(data, 'basePrice', 'base_price')
    if price is not None:
        result = validate_price(price)
        if not result.is_valid:
            raise APIError(result.error_message, 400, 'VALIDATION_ERROR')
        data['basePrice'] = result.sanitized_value
        data.pop('base_price', None)

    stock = data.get('stock')
    if stock is not None:
        result = InputValidator.validate_int(stock, 0, None, '재고는 0 이상의 정수여야 합니다.')
        if not result.is_valid:
            raise APIError(result.error_message, 400, 'VALIDATION_ERROR')
        data['stock'] = result.sanitized_value

    if pick(data, 'categoryId', 'category_id') is not None:
        category_id = require_id(data, 'categoryId', 'category_id', message='존재하지 않는 카테고리입니다.')
        if db.session.get(Category, category_id) is None:
            raise APIError('존재하지 않는 카테고리입니다.', 400, 'INVALID_CATEGORY')
        data['categoryId'] = category_id
        data.pop('category_id', None)

    if 'tags' in data and (not isinstance(data['tags'], list)
                           or not all(isinstance(tag, str) for tag in data['tags'])):
        raise APIError('태그는 문자열 목록이어야 합니다.', 400, 'VALIDATION_ERROR')

    for key in ('name', 'nameKo', 'name_ko'):
        if key in data:
            data[key] = sanitize_input(data[key], 200)

    product.apply_fields(data)
    return product


def _product_detail(product):
    return enrich_products([product])[0]


@catalog_bp.route('/categories')
def list_categories():
    categories = Category.query.filter_by(is_active=True).order_by(Category.id).all()
    return jsonify([category.to_dict() for category in categories])


@catalog_bp.route('/categories/<int:category_id>')
def get_category(category_id):
    category = get_or_404(Category, category_id, '카테고리를 찾을 수 없습니다.')
    return jsonify(category.to_dict())


@catalog_bp.route('/products')
def list_products():
    """Storefront product listing"""
    query = Product.listable()

    category_ids = parse_category_ids(request.args.get('category') or request.args.get('categoryId'))
    if category_ids:
        query = query.filter(Product.category_id.in_(category_ids))
    if parse_bool(request.args.get('featured')):
        query = query.filter(Product.is_featured.is_(True))

    products = query.order_by(Product.created_at.desc(), Product.id.desc()).all()
    search = request.args.get('search')
    if search:
        stats = product_stats([p.id for p in products])
        products = search_products(products, {'q': search, 'sort': 'newest'}, stats)
    return jsonify(enrich_products(products))


@catalog_bp.route('/products/search')
def search():
    """Filtered and sorted product search"""
    products = Product.listable().all()
    stats = product_stats([p.id for p in products])
    results = search_products(products, request.args, stats)
    return jsonify(enrich_products(results))


@catalog_bp.route('/products/<int:product_id>')
@catalog_bp.route('/product/<int:product_id>')
def get_product(product_id):
    product = get_or_404(Product, product_id, '상품을 찾을 수 없습니다.')
    if not (product.is_active and product.is_approved):
        # Hidden products are visible only to admins and their own seller
        user = get_optional_user()
        owner = (user is not None and user.seller is not None
                 and product.seller_id is not None and user.seller.id == product.seller_id)
        if user is None or not (user.is_administrator or owner):
            raise APIError('상품을 찾을 수 없습니다.', 404)
    return jsonify(_product_detail(product))


@catalog_bp.route('/products', methods=['POST'])
@admin_required
def create_product():
    data = request_validator.parse_json_body()
    product = apply_product_payload(Product(), data)
    product.is_approved = True
    db.session.add(product)
    db.session.flush()
    AdminLog.record(g.current_user.id, 'create_product', 'products', product.id, {'name': product.name})
    db.session.commit()
    current_app.logger.info(f"Product {product.id} created by admin {g.current_user.id}")
    return jsonify(product.to_dict()), 201


@catalog_bp.route('/products/<int:product_id>', methods=['PUT'])
@admin_required
def update_product(product_id):
    product = get_or_404(Product, product_id, '상품을 찾을 수 없습니다.')
    data = request_validator.parse_json_body()
    apply_product_payload(product, data, partial=True)
    AdminLog.record(g.current_user.id, 'update_product', 'products', product.id,
                    {'fields': sorted(data.keys())})
    db.session.commit()
    return jsonify(product.to_dict())


def remove_product(product, admin_id):
    """
    Delete a product and its cart and wishlist rows. Products that were ever
    ordered are deactivated instead so order history keeps its lines.

    Returns True when the row was actually deleted.
    """
    CartItem.query.filter_by(product_id=product.id).delete()
    Favorite.query.filter_by(product_id=product.id).delete()

    ordered = OrderItem.query.filter_by(product_id=product.id).first() is not None
    if ordered:
        product.is_active = False
    else:
        db.session.delete(product)
    AdminLog.record(admin_id, 'delete_product', 'products', product.id, {'softDeleted': ordered})
    db.session.commit()
    return not ordered


@catalog_bp.route('/products/<int:product_id>', methods=['DELETE'])
@admin_required
def delete_product(product_id):
    product = get_or_404(Product, product_id, '상품을 찾을 수 없습니다.')
    deleted = remove_product(product, g.current_user.id)
    return jsonify({'message': '상품이 삭제되었습니다.', 'deleted': deleted})


@catalog_bp.route('/collections')
def list_collections():
    return jsonify([collection.to_dict() for collection in COLLECTIONS.values()])


@catalog_bp.route('/collections/<collection>')
@catalog_bp.route('/collections/<collection>/<subcategory>')
def collection_products(collection, subcategory=None):
    products = Product.listable().order_by(Product.created_at.desc(), Product.id.desc()).all()
    matched = filter_collection(products, collection, subcategory)
    definition = COLLECTIONS.get(collection)
    return jsonify({
        'collection': definition.to_dict() if definition else {'slug': collection},
        'subcategory': subcategory,
        'products': enrich_products(matched),
    })


@catalog_bp.route('/products/<int:product_id>/reviews')
def list_reviews(product_id):
    get_or_404(Product, product_id, '상품을 찾을 수 없습니다.')
    reviews = ProductReview.query.filter_by(product_id=product_id) \
        .order_by(ProductReview.created_at.desc(), ProductReview.id.desc()).all()
    return jsonify([review.to_dict() for review in reviews])


@catalog_bp.route('/products/<int:product_id>/reviews', methods=['POST'])
@token_required
def create_review(product_id):
    get_or_404(Product, product_id, '상품을 찾을 수 없습니다.')
    data = request_validator.parse_json_body()
    rating = validate_rating(data.get('rating'))
    if not rating.is_valid:
        raise APIError(rating.error_message, 400, 'VALIDATION_ERROR')

    review = ProductReview(
        product_id=product_id,
        user_id=g.current_user.id,
        rating=rating.sanitized_value,
        comment=sanitize_input(data.get('comment', ''), 2000) or None,
    )
    db.session.add(review)
    db.session.commit()
    return jsonify(review.to_dict()), 201


@catalog_bp.route('/products/<int:product_id>/like', methods=['POST'])
@token_required
def like_product(product_id):
    get_or_404(Product, product_id, '상품을 찾을 수 없습니다.')
    if ProductLike.query.filter_by(user_id=g.current_user.id, product_id=product_id).first():
        raise APIError('Product already liked', 400, 'ALREADY_LIKED')
    like = ProductLike(user_id=g.current_user.id, product_id=product_id)
    db.session.add(like)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise APIError('Product already liked', 400, 'ALREADY_LIKED')
    return jsonify(like.to_dict()), 201


@catalog_bp.route('/products/<int:product_id>/like', methods=['DELETE'])
@token_required
def unlike_product(product_id):
    like = ProductLike.query.filter_by(user_id=g.current_user.id, product_id=product_id).first()
    if like is None:
        raise APIError('Like not found', 404)
    db.session.delete(like)
    db.session.commit()
    return jsonify({'message': 'Product unliked'})


@catalog_bp.route('/products/<int:product_id>/liked')
@token_required
def is_liked(product_id):
    liked = ProductLike.query.filter_by(user_id=g.current_user.id, product_id=product_id).first() is not None
    return jsonify({'isLiked': liked})


@catalog_bp.route('/favorites/user/<int:user_id>')
@catalog_bp.route('/wishlist/<int:user_id>')
@token_required
def list_favorites(user_id):
    ensure_self_or_admin(user_id)
    favorites = Favorite.query.filter_by(user_id=user_id) \
        .order_by(Favorite.created_at.desc(), Favorite.id.desc()).all()
    return jsonify([favorite.to_dict() for favorite in favorites])


@catalog_bp.route('/favorites/toggle', methods=['POST'])
@token_required
def toggle_favorite():
    data = request_validator.parse_json_body()
    product_id = require_id(data, 'product_id', 'productId', message='상품 ID가 필요합니다.')
    get_or_404(Product, product_id, '상품을 찾을 수 없습니다.')
    return jsonify({'isFavorite': Favorite.toggle(g.current_user.id, product_id)})


@catalog_bp.route('/wishlist', methods=['POST'])
@token_required
def add_wishlist():
    data = request_validator.parse_json_body()
    product_id = require_id(data, 'product_id', 'productId', message='상품 ID가 필요합니다.')
    get_or_404(Product, product_id, '상품을 찾을 수 없습니다.')

    favorite = Favorite.query.filter_by(user_id=g.current_user.id, product_id=product_id).first()
    if favorite is not None:
        return jsonify(favorite.to_dict())
    favorite = Favorite(user_id=g.current_user.id, product_id=product_id)
    db.session.add(favorite)
    db.session.commit()
    return jsonify(favorite.to_dict()), 201


@catalog_bp.route('/wishlist/<int:user_id>/<int:product_id>', methods=['DELETE'])
@token_required
def remove_wishlist(user_id, product_id):
    ensure_self_or_admin(user_id)
    favorite = Favorite.query.filter_by(user_id=user_id, product_id=product_id).first()
    if favorite is None:
        raise APIError('찜 목록에 없는 상품입니다.', 404)
    db.session.delete(favorite)
    db.session.commit()
    return jsonify({'message': '찜 목록에서 삭제되었습니다.'})
