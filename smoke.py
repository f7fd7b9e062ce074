from app import create_app
from models import db

app = create_app('testing')
with app.app_context():
    db.create_all()
    client = app.test_client()

    resp = client.post('/books', json={'title': 'Dune', 'author': 'Herbert'})
    book = resp.get_json()['book']
    if resp.status_code != 201 or book['isBorrowed']:
        print('FAIL: create', resp.status_code, book)
    book_id = book['id']

    resp = client.patch(f'/books/borrow/{book_id}')
    if resp.status_code != 200 or not resp.get_json()['book']['isBorrowed']:
        print('FAIL: borrow', resp.status_code)
    resp = client.patch(f'/books/borrow/{book_id}')
    if resp.status_code != 400:
        print('FAIL: second borrow', resp.status_code)
    resp = client.patch(f'/books/return/{book_id}')
    if resp.status_code != 200 or resp.get_json()['book']['isBorrowed']:
        print('FAIL: return', resp.status_code)

    available = [b['id'] for b in client.get('/books').get_json()['books']]
    if book_id not in available:
        print('FAIL: book missing from available list', available)
    else:
        print('SMOKE PASS')
