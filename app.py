from __future__ import annotations

import math
import os

from flask import Flask, current_app, jsonify, request, send_from_directory
from sqlalchemy.engine import make_url
from werkzeug.exceptions import HTTPException

from config import BaseConfig, config_by_name
from models import db
from services.catalog import BookService
from services.errors import CatalogError
from services.ratelimit import RateLimiter
from services.store import BookStore

PUBLIC_FOLDER = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'public')


def _load_config(app: Flask, config_name: str | None, test_config: dict | None) -> None:
    resolved_name = config_name or os.environ.get('FLASK_CONFIG', 'development')
    config_cls = config_by_name.get(resolved_name, BaseConfig)
    app.config.from_object(config_cls)
    if test_config:
        app.config.update(test_config)
    app.config.setdefault('SQLALCHEMY_ENGINE_OPTIONS', _engine_options(app.config))


def _engine_options(config) -> dict:
    timeout = config.get('STORE_TIMEOUT', 5)
    backend = make_url(config.get('SQLALCHEMY_DATABASE_URI') or 'sqlite://').get_backend_name()
    if backend == 'sqlite':
        return {'connect_args': {'timeout': timeout}}
    options = {'pool_timeout': timeout, 'pool_pre_ping': True}
    seconds = max(int(math.ceil(timeout)), 1)
    # bound connecting and each statement, not only the pool checkout
    if backend == 'postgresql':
        options['connect_args'] = {
            'connect_timeout': seconds,
            'options': f'-c statement_timeout={int(timeout * 1000)}',
        }
    elif backend in ('mysql', 'mariadb'):
        options['connect_args'] = {
            'connect_timeout': seconds,
            'read_timeout': seconds,
            'write_timeout': seconds,
        }
    return options


def _error_body(exc: CatalogError, show_details: bool) -> dict:
    body = {'message': exc.message, 'error': exc.kind}
    if exc.details is None:
        return body
    if exc.status_code < 500 or show_details:
        body['details'] = exc.details
    return body


def create_app(config_name: str | None = None, test_config: dict | None = None):
    if isinstance(config_name, dict) and test_config is None:
        test_config = config_name
        config_name = None
    app = Flask(__name__, static_folder=PUBLIC_FOLDER, static_url_path='/static')
    _load_config(app, config_name, test_config)
    app.logger.setLevel(app.config.get('LOG_LEVEL', 'INFO'))
    db.init_app(app)

    book_store = BookStore(db)
    book_service = BookService(book_store)
    limiter = RateLimiter(app.config['RATELIMIT_MAX'], app.config['RATELIMIT_WINDOW'])
    app.extensions['book_store'] = book_store
    app.extensions['book_service'] = book_service
    app.extensions['rate_limiter'] = limiter

    @app.before_request
    def enforce_rate_limit():
        if not app.config.get('RATELIMIT_ENABLED'):
            return None
        key = request.remote_addr or 'anonymous'
        if limiter.hit(key):
            return None
        app.logger.warning('Rate limit exceeded for %s', key)
        response = jsonify({'message': 'Too many requests, please try again later.'})
        response.status_code = 429
        response.headers['Retry-After'] = str(limiter.retry_after(key))
        return response

    @app.after_request
    def set_security_headers(response):
        response.headers.setdefault('X-Frame-Options', 'DENY')
        response.headers.setdefault('X-Content-Type-Options', 'nosniff')
        response.headers.setdefault('Referrer-Policy', 'no-referrer-when-downgrade')
        response.headers.setdefault(
            'Content-Security-Policy',
            "default-src 'self'; script-src 'self'; style-src 'self' 'unsafe-inline'; img-src 'self' data:;",
        )
        return response

    @app.after_request
    def set_cors_headers(response):
        response.headers.setdefault('Access-Control-Allow-Origin', app.config['CORS_ORIGINS'])
        response.headers.setdefault('Access-Control-Allow-Methods', 'GET, POST, PATCH, OPTIONS')
        response.headers.setdefault('Access-Control-Allow-Headers', 'Content-Type')
        return response

    @app.after_request
    def log_request(response):
        app.logger.info(
            '%s %s %s %s',
            request.remote_addr,
            request.method,
            request.full_path.rstrip('?'),
            response.status_code,
        )
        return response

    @app.errorhandler(CatalogError)
    def handle_catalog_error(exc: CatalogError):
        body = _error_body(exc, current_app.config.get('SHOW_ERROR_DETAILS', False))
        return jsonify(body), exc.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(exc: HTTPException):
        if exc.code == 404:
            return jsonify({'message': 'Endpoint not found.'}), 404
        return jsonify({'message': exc.description, 'error': exc.name}), exc.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(exc: Exception):
        app.logger.exception('Unhandled error: %s', exc)
        detail = str(exc) if app.config.get('SHOW_ERROR_DETAILS') else 'Internal server error.'
        return jsonify({'message': 'An unexpected error occurred.', 'error': detail}), 500

    @app.route('/')
    def index():
        return send_from_directory(PUBLIC_FOLDER, 'index.html')

    @app.route('/health')
    def health():
        return jsonify({'status': 'ok'})

    @app.route('/books', methods=['POST'])
    def add_book():
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            data = {}
        book = book_service.create(data.get('title'), data.get('author'))
        return jsonify({'message': 'Book added successfully.', 'book': book.to_dict()}), 201

    @app.route('/books/borrow/<book_id>', methods=['PATCH'])
    def borrow_book(book_id: str):
        book = book_service.borrow(book_id)
        return jsonify({'message': 'Book borrowed successfully.', 'book': book.to_dict()})

    @app.route('/books/return/<book_id>', methods=['PATCH'])
    def return_book(book_id: str):
        book = book_service.return_book(book_id)
        return jsonify({'message': 'Book returned successfully.', 'book': book.to_dict()})

    @app.route('/books', methods=['GET'])
    def list_available_books():
        books = [b.to_dict() for b in book_service.list_available()]
        return jsonify({'message': 'Available books retrieved successfully.', 'books': books})

    @app.route('/books/all', methods=['GET'])
    def list_all_books():
        books = [b.to_dict() for b in book_service.list_all()]
        return jsonify({'message': 'All books retrieved successfully.', 'books': books})

    return app


if __name__ == '__main__':
    application = create_app()
    store = application.extensions['book_store']
    with application.app_context():
        db.create_all()
    try:
        application.run(
            host=application.config['HOST'],
            port=application.config['PORT'],
            debug=application.config.get('DEBUG', False),
        )
    finally:
        with application.app_context():
            store.close()
