"""
Catalog Filters

FLOW OVERVIEW
- COLLECTIONS
  • Storefront collections (acrylic, wood, lanyard, packaging) with their subcategories.
  • Membership is decided by keyword substrings: Korean keywords against `name_ko`
    as written, English keywords against the lowercased `name`.
- filter_collection(products, collection, subcategory)
  • Collection filter, then optional subcategory filter. Unknown subcategories do not
    narrow the result; unknown collections match the slug inside the English name.
- product_stats(product_ids) / enrich_product(product, stats)
  • Review count, average rating, like count and stock flags for listing payloads.
- search_products(products, params, stats)
  • Text, category, price and featured filters followed by the requested sort.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from flask import current_app
from sqlalchemy import func

from ..models import db, ProductReview, ProductLike

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KeywordRule:
    """Korean and English keywords; a product matches when any keyword appears."""
    ko: Tuple[str, ...] = ()
    en: Tuple[str, ...] = ()

    def matches(self, product) -> bool:
        name_ko = product.name_ko or ''
        name_en = (product.name or '').lower()
        return any(word in name_ko for word in self.ko) or any(word in name_en for word in self.en)


@dataclass
class Collection:
    slug: str
    name_ko: str
    name_en: str
    rule: KeywordRule
    subcategories: Dict[str, Tuple[str, KeywordRule]] = field(default_factory=dict)

    def to_dict(self):
        return {
            'slug': self.slug,
            'nameKo': self.name_ko,
            'name': self.name_en,
            'subcategories': [
                {'slug': slug, 'nameKo': label} for slug, (label, _) in self.subcategories.items()
            ],
        }


COLLECTIONS: Dict[str, Collection] = {
    'acrylic': Collection(
        'acrylic', '아크릴굿즈', 'Acrylic Goods',
        KeywordRule(ko=('아크릴',), en=('acrylic',)),
        {
            'keyring': ('아크릴키링', KeywordRule(ko=('키링',), en=('keyring', 'keychain'))),
            'korotto': ('코롯토', KeywordRule(ko=('코롯토',), en=('korotto',))),
            'smarttok': ('스마트톡', KeywordRule(ko=('스마트톡',), en=('smart tok', 'grip'))),
            'stand': ('스탠드/디오라마', KeywordRule(ko=('스탠드', '디오라마'), en=('stand', 'diorama'))),
            'holder': ('포카홀더', KeywordRule(ko=('포카홀더', '홀더'), en=('holder', 'card'))),
            'shaker': ('아크릴쉐이커', KeywordRule(ko=('쉐이커',), en=('shaker',))),
            'carabiner': ('카라비너', KeywordRule(ko=('카라비너',), en=('carabiner',))),
            'mirror': ('거울', KeywordRule(ko=('거울',), en=('mirror',))),
            'magnet': ('자석', KeywordRule(ko=('자석', '마그넷'), en=('magnet',))),
            'stationery': ('문구', KeywordRule(ko=('문구',), en=('stationery',))),
            'cutting': ('재단', KeywordRule(ko=('재단',), en=('cutting',))),
        },
    ),
    'wood': Collection(
        'wood', '우드굿즈', 'Wood Goods',
        KeywordRule(ko=('우드', '나무'), en=('wood',)),
        {
            'keyring': ('우드키링', KeywordRule(ko=('키링',), en=('keyring',))),
            'coaster': ('코스터', KeywordRule(ko=('코스터',), en=('coaster',))),
            'magnet': ('마그넷', KeywordRule(ko=('마그넷', '자석'), en=('magnet',))),
        },
    ),
    'lanyard': Collection(
        'lanyard', '렌야드굿즈', 'Lanyard Goods',
        KeywordRule(ko=('렌야드', '랜야드', '스트랩'), en=('lanyard', 'strap')),
        {
            'neck': ('목걸이형', KeywordRule(ko=('목걸이',), en=('neck',))),
            'phone': ('핸드폰용', KeywordRule(ko=('핸드폰', '폰'), en=('phone',))),
        },
    ),
    'packaging': Collection(
        'packaging', '포장/부자재', 'Packaging/Materials',
        KeywordRule(ko=('포장', '박스', '부자재'), en=('packaging', 'box')),
        {
            'box': ('박스', KeywordRule(ko=('박스',), en=('box',))),
            'bag': ('포장지', KeywordRule(ko=('포장지', '봉투'), en=('bag', 'wrapping'))),
        },
    ),
}

PRICE_RANGES = {
    'under10': (None, 10000),
    '10to30': (10000, 30000),
    '30to50': (30000, 50000),
    'over50': (50000, None),
}

SORT_ALIASES = {
    'price_low': 'price_low', 'priceLow': 'price_low',
    'price_high': 'price_high', 'priceHigh': 'price_high',
    'newest': 'newest', 'latest': 'newest',
    'oldest': 'oldest',
    'featured': 'featured',
    'popular': 'popular',
    'name': 'name',
}


def filter_collection(products: Iterable, collection: str, subcategory: Optional[str] = None) -> List:
    """Products belonging to a collection (and subcategory when it is known)."""
    definition = COLLECTIONS.get(collection)
    if definition is None:
        slug = (collection or '').lower()
        return [p for p in products if slug in (p.name or '').lower()]

    matched = [p for p in products if definition.rule.matches(p)]
    if subcategory and subcategory in definition.subcategories:
        _, rule = definition.subcategories[subcategory]
        matched = [p for p in matched if rule.matches(p)]
    return matched


def stock_flags(stock: int) -> Dict[str, bool]:
    threshold = current_app.config['LOW_STOCK_THRESHOLD']
    stock = stock or 0
    return {
        'isOutOfStock': stock <= 0,
        'isLowStock': 0 < stock <= threshold,
    }


def product_stats(product_ids: List[int]) -> Dict[int, Dict[str, float]]:
    """Review and like aggregates for the given products, two grouped queries."""
    stats = {pid: {'reviewCount': 0, 'averageRating': 0.0, 'likeCount': 0} for pid in product_ids}
    if not product_ids:
        return stats

    review_rows = db.session.query(
        ProductReview.product_id, func.count(ProductReview.id), func.avg(ProductReview.rating)
    ).filter(ProductReview.product_id.in_(product_ids)).group_by(ProductReview.product_id).all()
    for product_id, count, average in review_rows:
        stats[product_id]['reviewCount'] = count
        stats[product_id]['averageRating'] = round(float(average or 0), 1)

    like_rows = db.session.query(
        ProductLike.product_id, func.count(ProductLike.id)
    ).filter(ProductLike.product_id.in_(product_ids)).group_by(ProductLike.product_id).all()
    for product_id, count in like_rows:
        stats[product_id]['likeCount'] = count

    return stats


def enrich_product(product, stats: Dict[int, Dict[str, float]]) -> Dict:
    data = product.to_dict()
    data.update(stats.get(product.id, {'reviewCount': 0, 'averageRating': 0.0, 'likeCount': 0}))
    data.update(stock_flags(product.stock))
    return data


def enrich_products(products: List) -> List[Dict]:
    stats = product_stats([p.id for p in products])
    return [enrich_product(p, stats) for p in products]


def matches_query(product, query: str) -> bool:
    """Case-insensitive substring match over names, descriptions and tags."""
    needle = query.strip().lower()
    if not needle:
        return True
    haystack = [
        product.name, product.name_ko, product.description, product.description_ko,
    ] + list(product.tags or [])
    return any(needle in str(text).lower() for text in haystack if text is not None)


def parse_category_ids(raw: Optional[str]) -> List[int]:
    """'1,2,all' -> [1, 2]; non-numeric entries are ignored."""
    if not raw:
        return []
    ids = []
    for part in str(raw).split(','):
        part = part.strip()
        if part.isdigit():
            ids.append(int(part))
    return ids


def _parse_price(raw) -> Optional[int]:
    if raw in (None, ''):
        return None
    try:
        return int(float(raw))
    except (TypeError, ValueError):
        logger.info(f"Ignoring invalid price filter {raw!r}")
        return None


def sort_products(products: List, sort: Optional[str], stats: Dict[int, Dict[str, float]]) -> List:
    key = SORT_ALIASES.get(sort or 'name', 'name')
    if key == 'price_low':
        return sorted(products, key=lambda p: (p.base_price, p.id))
    if key == 'price_high':
        return sorted(products, key=lambda p: (-p.base_price, p.id))
    if key == 'newest':
        return sorted(products, key=lambda p: (p.created_at, p.id), reverse=True)
    if key == 'oldest':
        return sorted(products, key=lambda p: (p.created_at, p.id))
    if key == 'featured':
        return sorted(products, key=lambda p: (not p.is_featured, p.name_ko or p.name))
    if key == 'popular':
        return sorted(products, key=lambda p: (-stats.get(p.id, {}).get('reviewCount', 0), p.id))
    return sorted(products, key=lambda p: p.name_ko or p.name)


def search_products(products: List, params, stats: Dict[int, Dict[str, float]]) -> List:
    """
    Apply search filters and sorting.

    Args:
        products: candidate (listable) products
        params: mapping of query parameters (q, category, min_price, max_price,
            price_range, featured, sort)
        stats: output of product_stats for the candidates

    Returns:
        Filtered and sorted list of products
    """
    query = params.get('q') or params.get('search') or ''
    if query:
        products = [p for p in products if matches_query(p, query)]

    category_ids = parse_category_ids(params.get('category'))
    if category_ids:
        products = [p for p in products if p.category_id in category_ids]

    low, high = PRICE_RANGES.get(params.get('price_range') or params.get('priceRange') or '', (None, None))
    min_price = _parse_price(params.get('min_price'))
    max_price = _parse_price(params.get('max_price'))
    if low is not None:
        products = [p for p in products if p.base_price >= low]
    if high is not None:
        products = [p for p in products if p.base_price < high]
    if min_price is not None:
        products = [p for p in products if p.base_price >= min_price]
    if max_price is not None:
        products = [p for p in products if p.base_price <= max_price]

    featured = str(params.get('featured', '')).lower()
    if featured in ('1', 'true'):
        products = [p for p in products if p.is_featured]

    return sort_products(products, params.get('sort'), stats)
