import pytest

from app import create_app
from app.extensions import db
from app.services.backend import backend

ADMIN_EMAIL = 'admin@perspective.io'
USER_EMAIL = 'reader@perspective.io'
PASSWORD = 'correct-horse'


@pytest.fixture
def app(tmp_path):
    app = create_app('testing', settings={'UPLOAD_FOLDER': str(tmp_path / 'uploads')})
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def state(app):
    """当前 app 的后端组件 (store / auth / queries / 各访问器)"""
    return app.extensions['cms']


def create_user(app, email, password=PASSWORD, admin=False):
    with app.app_context():
        user = backend.auth.sign_up(email, password, 'Test User')
        if admin:
            backend.auth.grant_role(user.id)
        return user.id


def login(client, email, password=PASSWORD, next_url=None):
    url = '/admin/login' if next_url is None else f'/admin/login?next={next_url}'
    return client.post(url, data={'email': email, 'password': password})


@pytest.fixture
def admin_client(app, client):
    create_user(app, ADMIN_EMAIL, admin=True)
    response = login(client, ADMIN_EMAIL)
    assert response.status_code == 302
    return client


@pytest.fixture
def user_client(app, client):
    create_user(app, USER_EMAIL)
    response = login(client, USER_EMAIL)
    assert response.status_code == 302
    return client


@pytest.fixture
def make_article(app):
    """通过 ArticleService 创建文章并返回记录"""
    def factory(**overrides):
        data = {
            'title': 'Slow Mornings',
            'slug': 'slow-mornings',
            'category': 'wellness',
            'status': 'published',
            'excerpt': 'On taking time.',
            'content': '<p>Breathe.</p>',
            'author_name': 'Ada',
        }
        data.update(overrides)
        with app.app_context():
            result = backend.articles.create(data)
        assert result.ok, result.error_message
        return result.data
    return factory
