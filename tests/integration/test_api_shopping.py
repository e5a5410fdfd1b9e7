"""
Integration tests for inventory, cart, coupons, checkout and orders.
"""
import pytest

from conftest import bearer, login

CUSTOMER = {'firstName': 'Ada', 'lastName': 'Lovelace', 'postalCode': '12345'}


class TestInventory:
    """Test product listing."""

    def test_anonymous_listing(self, client):
        response = client.get('/api/inventory')
        assert response.status_code == 200
        products = response.get_json()
        assert [p['id'] for p in products] == [0, 1, 2, 3, 4, 5]
        assert all(p['inStock'] for p in products)
        assert all('currentStock' not in p for p in products)

    @pytest.mark.parametrize('mode,expected', [
        ('lohi', [2, 0, 1, 3, 4, 5]),
        ('hilo', [5, 4, 1, 3, 0, 2]),
        ('az', [4, 0, 1, 5, 2, 3]),
        ('za', [3, 2, 5, 1, 0, 4]),
        ('bogus', [0, 1, 2, 3, 4, 5]),
    ])
    def test_sorting(self, client, mode, expected):
        products = client.get(f'/api/inventory?sort={mode}').get_json()
        assert [p['id'] for p in products] == expected

    def test_admin_sees_current_stock(self, client, admin_headers):
        products = client.get('/api/inventory', headers=admin_headers).get_json()
        assert all(p['currentStock'] == 10 for p in products)

    def test_problem_user_gets_broken_images(self, client):
        headers = bearer(login(client, 'problem_user'))
        products = client.get('/api/inventory', headers=headers).get_json()
        assert {p['imageUrl'] for p in products} == {'https://www.saucedemo.com/img/problem-user.jpg'}

    def test_standard_user_images_are_per_product(self, client, user_headers):
        products = client.get('/api/inventory', headers=user_headers).get_json()
        assert products[4]['imageUrl'].endswith('sauce-backpack-1200x1500.jpg')

    def test_performance_user_inventory_is_delayed(self, client, sleeper):
        headers = bearer(login(client, 'performance_glitch_user'))
        sleeper.calls.clear()
        client.get('/api/inventory', headers=headers)
        assert sleeper.calls == [0.0]

    def test_out_of_stock_flag(self, client, state):
        state.ledger.set_stock(3, 0)
        products = client.get('/api/inventory').get_json()
        assert products[3]['inStock'] is False

    def test_product_detail(self, client):
        response = client.get('/api/inventory/4')
        assert response.status_code == 200
        assert response.get_json()['name'] == 'Sauce Labs Backpack'

        assert client.get('/api/inventory/99').status_code == 404


class TestCart:
    """Test cart mutations over HTTP."""

    def test_cart_requires_auth(self, client):
        assert client.get('/api/cart').status_code == 401
        assert client.post('/api/cart', json={'productId': 1}).status_code == 401

    def test_add_and_merge(self, client, user_headers):
        response = client.post('/api/cart', json={'productId': 4}, headers=user_headers)
        assert response.status_code == 201

        response = client.post('/api/cart', json={'productId': 4, 'quantity': 2}, headers=user_headers)
        cart = response.get_json()
        assert cart['items'] == [{
            'productId': 4, 'name': 'Sauce Labs Backpack', 'price': 29.99,
            'quantity': 3, 'lineTotal': 89.97,
        }]
        assert cart['total'] == 97.17

    def test_add_unknown_product(self, client, user_headers):
        response = client.post('/api/cart', json={'productId': 99}, headers=user_headers)
        assert response.status_code == 404
        assert response.get_json()['kind'] == 'ProductNotFound'

    def test_add_beyond_stock(self, client, state, user_headers):
        state.ledger.set_stock(0, 2)
        response = client.post('/api/cart', json={'productId': 0, 'quantity': 3}, headers=user_headers)
        assert response.status_code == 400
        data = response.get_json()
        assert data['kind'] == 'InsufficientStock'
        assert data['available'] == 2

    def test_update_quantity(self, client, user_headers):
        client.post('/api/cart', json={'productId': 1}, headers=user_headers)
        response = client.patch('/api/cart/1', json={'quantity': 5}, headers=user_headers)
        assert response.status_code == 200
        assert response.get_json()['items'][0]['quantity'] == 5

        response = client.patch('/api/cart/1', json={'quantity': 11}, headers=user_headers)
        assert response.status_code == 400

        response = client.patch('/api/cart/2', json={'quantity': 1}, headers=user_headers)
        assert response.status_code == 404

    def test_delete_decrements_one_unit(self, client, user_headers):
        client.post('/api/cart', json={'productId': 1, 'quantity': 2}, headers=user_headers)

        cart = client.delete('/api/cart/1', headers=user_headers).get_json()
        assert cart['items'][0]['quantity'] == 1

        cart = client.delete('/api/cart/1', headers=user_headers).get_json()
        assert cart['items'] == []

        response = client.delete('/api/cart/1', headers=user_headers)
        assert response.status_code == 404

    def test_reorder(self, client, user_headers):
        for pid in (0, 1, 2):
            client.post('/api/cart', json={'productId': pid}, headers=user_headers)

        response = client.post('/api/cart/reorder', json={'orderedProductIds': [2, 0, 1]}, headers=user_headers)
        assert response.status_code == 200
        assert [i['productId'] for i in response.get_json()['items']] == [2, 0, 1]

        response = client.post('/api/cart/reorder', json={'orderedProductIds': [2, 0]}, headers=user_headers)
        assert response.status_code == 400

    def test_reset_clears_cart_and_coupon(self, client, user_headers):
        client.post('/api/cart', json={'productId': 5}, headers=user_headers)
        client.post('/api/cart/coupon', json={'code': 'SAVE20'}, headers=user_headers)

        response = client.post('/api/reset', headers=user_headers)
        assert response.status_code == 200

        cart = client.get('/api/cart', headers=user_headers).get_json()
        assert cart['items'] == []
        assert cart['coupon'] is None


class TestCoupons:
    """Test coupon application."""

    def test_apply_valid_coupon(self, client, user_headers):
        client.post('/api/cart', json={'productId': 5, 'quantity': 2}, headers=user_headers)
        response = client.post('/api/cart/coupon', json={'code': 'SAVE20'}, headers=user_headers)
        assert response.status_code == 200
        data = response.get_json()
        assert data['coupon'] == 'SAVE20'
        assert data['itemTotal'] == 99.98
        assert data['discount'] == 20.00
        assert data['subtotal'] == 79.98
        assert data['tax'] == 6.40
        assert data['total'] == 86.38

    def test_invalid_coupon_clears_previous(self, client, user_headers):
        client.post('/api/cart', json={'productId': 5}, headers=user_headers)
        client.post('/api/cart/coupon', json={'code': 'TEST50'}, headers=user_headers)

        response = client.post('/api/cart/coupon', json={'code': 'FREESTUFF'}, headers=user_headers)
        assert response.status_code == 400
        assert response.get_json()['kind'] == 'InvalidCoupon'
        assert client.get('/api/cart', headers=user_headers).get_json()['coupon'] is None

    def test_remove_coupon(self, client, user_headers):
        client.post('/api/cart', json={'productId': 5}, headers=user_headers)
        client.post('/api/cart/coupon', json={'code': 'TEST50'}, headers=user_headers)

        data = client.delete('/api/cart/coupon', headers=user_headers).get_json()
        assert data['coupon'] is None
        assert data['discount'] == 0.0


class TestCheckout:
    """Test checkout over HTTP."""

    def test_successful_checkout(self, client, state, user_headers):
        client.post('/api/cart', json={'productId': 4, 'quantity': 2}, headers=user_headers)

        response = client.post('/api/checkout', json=CUSTOMER, headers=user_headers)
        assert response.status_code == 201
        order = response.get_json()
        assert order['orderId'].startswith('ORDER-')
        assert order['customer'] == CUSTOMER
        assert order['total'] == 64.78

        assert state.ledger.get_available(4) == 8
        assert client.get('/api/cart', headers=user_headers).get_json()['items'] == []

        last = client.get('/api/orders/last', headers=user_headers).get_json()
        assert last['orderId'] == order['orderId']

        history = client.get('/api/orders', headers=user_headers).get_json()
        assert history['total'] == 1

    def test_missing_fields(self, client, user_headers):
        client.post('/api/cart', json={'productId': 4}, headers=user_headers)
        response = client.post('/api/checkout', json={'firstName': 'Ada'}, headers=user_headers)
        assert response.status_code == 400
        assert response.get_json()['fields'] == ['lastName', 'postalCode']

    def test_empty_cart(self, client, user_headers):
        response = client.post('/api/checkout', json=CUSTOMER, headers=user_headers)
        assert response.status_code == 400
        assert response.get_json()['kind'] == 'EmptyCart'

    def test_stock_shortfall_is_atomic(self, client, state, user_headers):
        client.post('/api/cart', json={'productId': 0, 'quantity': 2}, headers=user_headers)
        client.post('/api/cart', json={'productId': 1, 'quantity': 3}, headers=user_headers)
        state.ledger.set_stock(1, 1)

        response = client.post('/api/checkout', json=CUSTOMER, headers=user_headers)
        assert response.status_code == 400
        data = response.get_json()
        assert data['kind'] == 'InsufficientStock'
        assert data['productId'] == 1

        assert state.ledger.get_available(0) == 10
        assert state.ledger.get_available(1) == 1
        assert len(client.get('/api/cart', headers=user_headers).get_json()['items']) == 2

    def test_error_user_checkout_fails_without_side_effects(self, client, state, sleeper):
        headers = bearer(login(client, 'error_user'))
        client.post('/api/cart', json={'productId': 2}, headers=headers)

        response = client.post('/api/checkout', json=CUSTOMER, headers=headers)
        assert response.status_code == 500
        assert response.get_json()['kind'] == 'InjectedFailure'
        assert sleeper.calls == [0.0]

        assert state.ledger.get_available(2) == 10
        assert len(client.get('/api/cart', headers=headers).get_json()['items']) == 1
        assert client.get('/api/orders/last', headers=headers).status_code == 404

    def test_checkout_with_coupon_records_discount(self, client, user_headers):
        client.post('/api/cart', json={'productId': 5}, headers=user_headers)
        client.post('/api/cart/coupon', json={'code': 'TEST50'}, headers=user_headers)

        order = client.post('/api/checkout', json=CUSTOMER, headers=user_headers).get_json()
        assert order['coupon'] == 'TEST50'
        assert order['discount'] == 25.00

        cart = client.get('/api/cart', headers=user_headers).get_json()
        assert cart['coupon'] is None
