"""
Tests for the shopping cart and its price summary.
"""

from allthatprinting.models import db, CartItem


class TestCartLines:
    """Test adding, updating and removing cart lines"""

    def test_add_then_merge(self, client, product, test_user, user_headers):
        first = client.post('/api/cart', headers=user_headers, json={'productId': product.id, 'quantity': 2})
        assert first.status_code == 201
        second = client.post('/api/cart/add', headers=user_headers, json={'product_id': product.id, 'quantity': 3})
        assert second.status_code == 200
        assert second.get_json()['quantity'] == 5

        cart = client.get(f'/api/cart/{test_user.id}', headers=user_headers).get_json()
        assert len(cart) == 1
        assert cart[0]['lineTotal'] == 60000
        assert cart[0]['product']['nameKo'] == '아크릴 키링'

    def test_default_quantity_is_one(self, client, product, user_headers):
        response = client.post('/api/cart', headers=user_headers, json={'productId': product.id})
        assert response.get_json()['quantity'] == 1

    def test_invalid_quantity(self, client, product, user_headers):
        for quantity in (0, -1, 'two', 1.5):
            response = client.post('/api/cart', headers=user_headers,
                                   json={'productId': product.id, 'quantity': quantity})
            assert response.status_code == 400, quantity

    def test_inactive_product_rejected(self, client, product, user_headers):
        product.is_active = False
        db.session.commit()
        response = client.post('/api/cart', headers=user_headers, json={'productId': product.id})
        assert response.status_code == 400
        assert response.get_json()['error_code'] == 'PRODUCT_INACTIVE'

    def test_missing_product(self, client, db_session, user_headers):
        assert client.post('/api/cart', headers=user_headers, json={'productId': 42}).status_code == 404
        assert client.post('/api/cart', headers=user_headers, json={}).status_code == 400

    def test_update_quantity(self, client, product, test_user, user_headers):
        item = CartItem(user_id=test_user.id, product_id=product.id, quantity=1)
        db.session.add(item)
        db.session.commit()

        response = client.put(f'/api/cart/{item.id}', headers=user_headers, json={'quantity': 4})
        assert response.status_code == 200
        assert response.get_json()['quantity'] == 4

    def test_zero_quantity_removes_line(self, client, product, test_user, user_headers):
        item = CartItem(user_id=test_user.id, product_id=product.id, quantity=1)
        db.session.add(item)
        db.session.commit()

        response = client.put(f'/api/cart/{item.id}', headers=user_headers, json={'quantity': 0})
        assert response.get_json()['removed'] is True
        assert CartItem.query.count() == 0

    def test_other_users_line_is_forbidden(self, client, product, test_user, other_headers):
        item = CartItem(user_id=test_user.id, product_id=product.id, quantity=1)
        db.session.add(item)
        db.session.commit()

        assert client.put(f'/api/cart/{item.id}', headers=other_headers, json={'quantity': 2}).status_code == 403
        assert client.delete(f'/api/cart/{item.id}', headers=other_headers).status_code == 403
        assert client.get(f'/api/cart/{test_user.id}', headers=other_headers).status_code == 403

    def test_delete_routes(self, client, products, test_user, user_headers):
        first = CartItem(user_id=test_user.id, product_id=products[0].id, quantity=1)
        second = CartItem(user_id=test_user.id, product_id=products[1].id, quantity=1)
        db.session.add_all([first, second])
        db.session.commit()

        assert client.delete(f'/api/cart/{first.id}', headers=user_headers).status_code == 200
        assert client.delete(f'/api/cart/{test_user.id}/{second.id}', headers=user_headers).status_code == 200
        assert client.delete(f'/api/cart/{test_user.id}/{second.id}', headers=user_headers).status_code == 404
        assert CartItem.query.count() == 0


class TestCartSummary:
    """Test subtotal, shipping fee and coupon discount"""

    def _add(self, user, product, quantity):
        db.session.add(CartItem(user_id=user.id, product_id=product.id, quantity=quantity))
        db.session.commit()

    def test_shipping_fee_below_threshold(self, client, product, test_user, user_headers):
        self._add(test_user, product, 2)
        data = client.get(f'/api/cart/{test_user.id}/summary', headers=user_headers).get_json()
        assert data['subtotal'] == 24000
        assert data['shippingFee'] == 3000
        assert data['total'] == 27000
        assert data['itemCount'] == 2

    def test_free_shipping(self, client, product, test_user, user_headers):
        self._add(test_user, product, 5)
        data = client.get(f'/api/cart/{test_user.id}/summary', headers=user_headers).get_json()
        assert data['subtotal'] == 60000
        assert data['shippingFee'] == 0
        assert data['total'] == 60000

    def test_empty_cart(self, client, test_user, user_headers):
        data = client.get(f'/api/cart/{test_user.id}/summary', headers=user_headers).get_json()
        assert data['total'] == 0
        assert data['shippingFee'] == 0

    def test_coupon_discount(self, client, product, coupon, test_user, user_headers):
        self._add(test_user, product, 2)
        data = client.get(f'/api/cart/{test_user.id}/summary?coupon=welcome10', headers=user_headers).get_json()
        assert data['couponValid'] is True
        assert data['discount'] == 2400
        assert data['total'] == 24000 - 2400 + 3000

    def test_unknown_coupon(self, client, product, test_user, user_headers):
        self._add(test_user, product, 1)
        data = client.get(f'/api/cart/{test_user.id}/summary?coupon=NOPE', headers=user_headers).get_json()
        assert data['couponValid'] is False
        assert data['discount'] == 0
        assert data['couponMessage'] == '존재하지 않는 쿠폰입니다.'
