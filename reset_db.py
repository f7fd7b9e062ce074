from app import create_app
from models import db

app = create_app()
with app.app_context():
    db.drop_all()
    print('Dropped existing tables')
    db.create_all()
    print(f"Recreated database ({app.config['SQLALCHEMY_DATABASE_URI']})")
