import io

import pytest
from werkzeug.datastructures import FileStorage

from app.exceptions import NotFound, StorageError, StoreError
from app.services.backend import backend
from app.services.media_service import MediaService
from app.services.query_cache import QueryCache
from app.services.sql_store import SqlStore


@pytest.fixture
def ctx(app):
    with app.app_context():
        yield


def _article(**overrides):
    data = {'title': 'Slow Mornings', 'slug': 'slow-mornings', 'category': 'wellness', 'status': 'draft'}
    data.update(overrides)
    return data


class TestArticles:

    def test_published_at_follows_status(self, ctx):
        created = backend.articles.create(_article())
        assert created.ok
        assert created.data['published_at'] is None

        article_id = created.data['id']
        published = backend.articles.update(article_id, {'status': 'published'})
        first_published_at = published.data['published_at']
        assert first_published_at

        edited = backend.articles.update(article_id, {'title': 'Slower Mornings', 'status': 'published'})
        assert edited.data['published_at'] == first_published_at

        unpublished = backend.articles.update(article_id, {'status': 'draft'})
        assert unpublished.data['published_at'] is None

    def test_blank_optional_fields_become_null(self, ctx):
        created = backend.articles.create(_article(excerpt='  ', featured_image=''))
        assert created.data['excerpt'] is None
        assert created.data['featured_image'] is None

    def test_write_refreshes_cached_list(self, ctx):
        assert backend.articles.list().data == []
        backend.articles.create(_article())
        assert [a['slug'] for a in backend.articles.list().data] == ['slow-mornings']

    def test_duplicate_slug_reports_conflict(self, ctx):
        backend.articles.create(_article())
        errors = []
        outcome = backend.articles.create(_article(title='Copy'), on_error=errors.append)

        assert not outcome.ok
        assert outcome.error.code == 409
        assert 'duplicate key' in outcome.error_message
        assert len(errors) == 1
        assert len(backend.articles.list().data) == 1

    def test_update_missing_article(self, ctx):
        outcome = backend.articles.update('missing', {'title': 'x'})
        assert isinstance(outcome.error, NotFound)

    def test_public_reads(self, ctx):
        backend.articles.create(_article(slug='a', status='published', category='Wellness'))
        backend.articles.create(_article(slug='b', status='published'))
        backend.articles.create(_article(slug='c', status='draft'))
        backend.articles.create(_article(slug='d', status='published', category='travel'))

        assert {a['slug'] for a in backend.articles.by_category('wellness').data} == {'a', 'b'}
        assert [a['slug'] for a in backend.articles.related('wellness', 'a').data] == ['b']
        assert backend.articles.get_published_by_slug('c').data is None
        assert backend.articles.get_published_by_slug('d').data['category'] == 'travel'

    def test_search_matches_title_or_category(self, ctx):
        backend.articles.create(_article())
        backend.articles.create(_article(title='Night Trains', slug='night-trains', category='travel'))

        assert [a['slug'] for a in backend.articles.search('TRAIN').data] == ['night-trains']
        assert [a['slug'] for a in backend.articles.search('wellness').data] == ['slow-mornings']
        assert len(backend.articles.search('  ').data) == 2

    def test_store_outage_is_reported(self, ctx, state, monkeypatch):
        def broken(query):
            raise StoreError('connection refused')

        monkeypatch.setattr(state.store, 'execute', broken)
        result = backend.articles.list('published')

        assert result.error_message == 'connection refused'
        assert result.data is None


class TestCategories:

    def test_lookup_by_slug_ignores_case(self, ctx):
        backend.categories.create({'name': 'Wellness', 'slug': 'wellness'})
        category, result = backend.categories.get_by_slug('WELLNESS')
        assert category['name'] == 'Wellness'
        assert result.is_success
        assert backend.categories.slugs() == ['wellness']

    def test_deleting_category_keeps_articles(self, ctx):
        created = backend.categories.create({'name': 'Travel', 'slug': 'travel'})
        backend.articles.create(_article(category='travel', status='published'))

        assert backend.categories.delete(created.data['id']).ok
        assert backend.categories.slugs() == []
        assert backend.articles.by_category('travel').data[0]['category'] == 'travel'


class TestSectionsAndSettings:

    def test_card_save_is_an_upsert(self, ctx):
        backend.section_cards.save('wellness_cards', 'Wellness Featured Cards', [{'id': '1', 'title': 'Sleep'}])
        backend.section_cards.save('wellness_cards', 'Wellness Featured Cards', [{'id': '2', 'title': 'Walk'}])

        rows = backend.section_cards.list().data
        assert len(rows) == 1
        assert rows[0]['content'] == {'cards': [{'id': '2', 'title': 'Walk'}]}
        assert backend.site_sections.get('wellness_cards').data['content']['cards'][0]['title'] == 'Walk'

    def test_settings_save_is_an_upsert(self, ctx):
        assert backend.settings.value('seo', {}) == {}
        backend.settings.save('seo', {'site_title': 'Perspective'})
        backend.settings.save('seo', {'site_title': 'Perspective Journal'})

        assert backend.settings.value('seo') == {'site_title': 'Perspective Journal'}
        assert len(backend.store.query('site_settings').all()) == 1

    def test_hero_reads_active_record(self, ctx):
        assert backend.hero.get_active().data is None
        backend.hero.create({'title': 'Live slowly', 'button_text': ''})
        hero = backend.hero.get_active().data
        assert hero['title'] == 'Live slowly'
        assert hero['button_text'] is None


class FailingStorage:
    def __init__(self):
        self.removed = []

    def upload(self, path, file, content_type=None):
        return f'/uploads/{path}'

    def remove(self, path):
        self.removed.append(path)
        raise StorageError('Delete failed: permission denied')


class FailingInsertStore(SqlStore):
    def insert(self, table, values):
        raise StoreError('new row violates row-level security policy', code=400)


def _upload(name='photo.png', body=b'image-bytes'):
    return FileStorage(stream=io.BytesIO(body), filename=name, content_type='image/png')


class TestMedia:

    def test_upload_records_metadata(self, ctx, state):
        outcome = backend.media.upload(_upload(), uploaded_by='u1')

        assert outcome.ok
        item = outcome.data
        assert item['name'] == 'photo.png'
        assert item['file_type'] == 'image/png'
        assert item['file_size'] == len(b'image-bytes')
        assert item['file_url'] == f'/uploads/{item["file_path"]}'
        assert backend.media.find(item["id"])[0]['id'] == item['id']

    def test_rejects_disallowed_type(self, ctx):
        outcome = backend.media.upload(_upload('payload.exe'))
        assert outcome.error.code == 400
        assert backend.media.list().data == []

    def test_failed_storage_delete_keeps_record(self, ctx):
        store = SqlStore()
        storage = FailingStorage()
        media = MediaService(QueryCache(), store, storage)
        item = store.insert('media', {
            'name': 'a.png', 'file_path': 'uploads/a.png', 'file_url': '/uploads/uploads/a.png',
        })

        outcome = media.delete(item)

        assert isinstance(outcome.error, StorageError)
        assert storage.removed == ['uploads/a.png']
        assert [row['id'] for row in media.list().data] == [item['id']]

    def test_failed_insert_removes_uploaded_file(self, ctx):
        class RecordingStorage(FailingStorage):
            def remove(self, path):
                self.removed.append(path)

        storage = RecordingStorage()
        media = MediaService(QueryCache(), FailingInsertStore(), storage)

        outcome = media.upload(_upload())

        assert outcome.error.code == 400
        assert len(storage.removed) == 1
        assert storage.removed[0].endswith('.png')

    def test_update_alt_text(self, ctx):
        item = backend.media.upload(_upload()).data
        outcome = backend.media.update_alt(item['id'], '  A quiet morning  ')
        assert outcome.data['alt_text'] == 'A quiet morning'
        assert backend.media.find(item["id"])[0]['alt_text'] == 'A quiet morning'
