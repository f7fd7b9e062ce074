import uuid

import pytest
from sqlalchemy.exc import OperationalError

from app import create_app
from models import Book, db


def _create(client, title='Dune', author='Herbert'):
    resp = client.post('/books', json={'title': title, 'author': author})
    assert resp.status_code == 201
    return resp.get_json()['book']


def test_borrow_and_return_scenario(client, app):
    resp = client.post('/books', json={'title': 'Dune', 'author': 'Herbert'})
    assert resp.status_code == 201
    body = resp.get_json()
    assert body['message'] == 'Book added successfully.'
    book = body['book']
    assert book['isBorrowed'] is False
    assert set(book) == {'id', 'title', 'author', 'isBorrowed', 'createdAt', 'updatedAt'}
    book_id = book['id']

    resp = client.patch(f'/books/borrow/{book_id}')
    assert resp.status_code == 200
    assert resp.get_json()['message'] == 'Book borrowed successfully.'
    assert resp.get_json()['book']['isBorrowed'] is True

    resp = client.patch(f'/books/borrow/{book_id}')
    assert resp.status_code == 400
    assert resp.get_json() == {'message': 'Book is already borrowed.', 'error': 'InvalidState'}

    resp = client.get('/books')
    assert book_id not in [b['id'] for b in resp.get_json()['books']]

    resp = client.patch(f'/books/return/{book_id}')
    assert resp.status_code == 200
    assert resp.get_json()['book']['isBorrowed'] is False

    resp = client.patch(f'/books/return/{book_id}')
    assert resp.status_code == 400
    assert resp.get_json()['message'] == 'Book is not currently borrowed.'

    resp = client.get('/books')
    assert resp.status_code == 200
    assert resp.get_json()['message'] == 'Available books retrieved successfully.'
    assert book_id in [b['id'] for b in resp.get_json()['books']]


def test_create_with_blank_title_is_rejected(client, app):
    resp = client.post('/books', json={'title': '', 'author': 'Herbert'})
    assert resp.status_code == 400
    body = resp.get_json()
    assert body['error'] == 'ValidationError'
    assert body['details'] == [{'field': 'title', 'message': 'Title is required'}]
    assert Book.query.count() == 0


@pytest.mark.parametrize('kwargs', [
    {},
    {'data': 'not json', 'content_type': 'application/json'},
    {'json': ['Dune', 'Herbert']},
    {'json': {'title': '   ', 'author': '   '}},
])
def test_create_with_bad_body_is_rejected(client, app, kwargs):
    resp = client.post('/books', **kwargs)
    assert resp.status_code == 400
    assert resp.get_json()['error'] == 'ValidationError'
    assert Book.query.count() == 0


def test_create_trims_whitespace(client):
    book = _create(client, '  Emma ', ' Austen  ')
    assert book['title'] == 'Emma'
    assert book['author'] == 'Austen'


def test_unknown_book_is_not_found(client):
    resp = client.patch('/books/borrow/nonexistent-id')
    assert resp.status_code == 404
    assert resp.get_json() == {'message': 'Book not found.', 'error': 'NotFound'}
    resp = client.patch(f'/books/return/{uuid.uuid4().hex}')
    assert resp.status_code == 404


def test_malformed_id_is_bad_request(client):
    resp = client.patch('/books/borrow/bad%20id!')
    assert resp.status_code == 400
    assert resp.get_json() == {'message': 'Invalid book ID', 'error': 'ValidationError'}


def test_list_all_includes_borrowed_newest_first(client):
    first = _create(client, 'Dune', 'Herbert')
    second = _create(client, 'Emma', 'Austen')
    client.patch(f"/books/borrow/{first['id']}")

    all_books = client.get('/books/all').get_json()
    available = client.get('/books').get_json()['books']

    assert all_books['message'] == 'All books retrieved successfully.'
    ids = [b['id'] for b in all_books['books']]
    assert set(ids) == {first['id'], second['id']}
    created = [b['createdAt'] for b in all_books['books']]
    assert created == sorted(created, reverse=True)
    assert [b['id'] for b in available] == [second['id']]
    assert len(all_books['books']) >= len(available)


def test_empty_lists(client):
    assert client.get('/books').get_json()['books'] == []
    assert client.get('/books/all').get_json()['books'] == []


def test_unmatched_route(client):
    resp = client.get('/nope')
    assert resp.status_code == 404
    assert resp.get_json() == {'message': 'Endpoint not found.'}


def test_wrong_method_is_json(client):
    resp = client.delete('/books')
    assert resp.status_code == 405
    assert resp.get_json()['error'] == 'Method Not Allowed'


def test_store_failure_hides_details_outside_development(client, monkeypatch):
    def broken_commit():
        raise OperationalError('INSERT INTO book', {}, Exception('disk I/O error'))

    monkeypatch.setattr(db.session, 'commit', broken_commit)
    resp = client.post('/books', json={'title': 'Dune', 'author': 'Herbert'})
    assert resp.status_code == 500
    assert resp.get_json() == {'message': 'Database operation failed.', 'error': 'StoreError'}


def test_store_failure_shows_details_in_development(monkeypatch):
    app = create_app('development', {'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:'})
    with app.app_context():
        db.create_all()

        def broken_commit():
            raise OperationalError('INSERT INTO book', {}, Exception('disk I/O error'))

        monkeypatch.setattr(db.session, 'commit', broken_commit)
        resp = app.test_client().post('/books', json={'title': 'Dune', 'author': 'Herbert'})
        assert resp.status_code == 500
        assert 'disk I/O error' in resp.get_json()['details']
        monkeypatch.undo()
        db.session.remove()
        db.drop_all()


@pytest.mark.parametrize('config_name, expected', [
    ('production', 'Internal server error.'),
    ('development', 'boom'),
])
def test_unexpected_error_is_json(config_name, expected):
    app = create_app(config_name, {'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:'})

    @app.route('/explode')
    def explode():
        raise RuntimeError('boom')

    resp = app.test_client().get('/explode')
    assert resp.status_code == 500
    assert resp.get_json() == {'message': 'An unexpected error occurred.', 'error': expected}


def test_security_and_cors_headers(client):
    resp = client.get('/health')
    assert resp.get_json() == {'status': 'ok'}
    assert resp.headers['X-Frame-Options'] == 'DENY'
    assert resp.headers['X-Content-Type-Options'] == 'nosniff'
    assert resp.headers['Access-Control-Allow-Origin'] == '*'
    assert 'PATCH' in resp.headers['Access-Control-Allow-Methods']


def test_preflight_request(client):
    resp = client.options('/books')
    assert resp.status_code == 200
    assert resp.headers['Access-Control-Allow-Headers'] == 'Content-Type'


def test_rate_limit_returns_429():
    app = create_app('testing', {
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'RATELIMIT_ENABLED': True,
        'RATELIMIT_MAX': 2,
    })
    client = app.test_client()
    assert client.get('/health').status_code == 200
    assert client.get('/health').status_code == 200
    resp = client.get('/health')
    assert resp.status_code == 429
    assert resp.get_json() == {'message': 'Too many requests, please try again later.'}
    assert int(resp.headers['Retry-After']) >= 1


def test_index_serves_welcome_page(client):
    resp = client.get('/')
    assert resp.status_code == 200
    assert b'Library Catalog' in resp.data
