"""End-to-end tests of session events driving the sync pipeline."""

import pytest
from sqlalchemy.orm import sessionmaker

from algolia_sync.domain.index.service.extractor import deserialize_key, serialize_key
from algolia_sync.domain.shared.error import ConfigurationError
from algolia_sync.infrastructure.persistence.session import SessionSynchronizer
from support import Article, AuditLog, Author, Draft


def key(id: int) -> str:
    return serialize_key({"id": id})


@pytest.fixture
def article(session, client):
    """A committed, published article whose creation has already been sent."""
    article = Article(id=7, title="Hello", body="Long enough body", published=True)
    session.add(article)
    session.commit()
    client.calls.clear()
    return article


class TestInsert:
    def test_commit_sends_creation(self, session, client):
        session.add(Article(id=1, title="Hello", body="World wide web", published=True))
        session.commit()

        [objects] = client.payloads("articles", "save_objects")
        assert objects == [
            {
                "title": "Hello",
                "content": "World wide web",
                "author": None,
                "excerpt": "World wide",
                "objectID": key(1),
            }
        ]

    def test_unpublished_insert_is_not_sent(self, session, client):
        session.add(Article(id=1, title="Hidden", published=False))
        session.commit()

        assert client.calls == []

    def test_rollback_sends_nothing(self, session, client):
        session.add(Article(id=1, title="Hello", published=True))
        session.flush()
        session.rollback()

        assert client.calls == []

    def test_several_flushes_send_one_record(self, session, client):
        article = Article(id=1, title="Draft title", published=True)
        session.add(article)
        session.flush()
        article.title = "Final title"
        session.flush()
        session.commit()

        [objects] = client.payloads("articles", "save_objects")
        assert len(objects) == 1
        assert objects[0]["title"] == "Final title"
        assert client.payloads("articles", "partial_update_objects") == []

    def test_insert_then_delete_sends_nothing(self, session, client):
        article = Article(id=1, title="Short lived", published=True)
        session.add(article)
        session.flush()
        session.delete(article)
        session.commit()

        assert client.calls == []

    def test_unindexed_and_manual_classes_are_ignored(self, session, client):
        session.add(AuditLog(id=1, message="x"))
        session.add(Draft(id=1, title="not automatic"))
        session.commit()

        assert client.calls == []

    def test_related_entities_are_nested(self, session, client):
        author = Author(id=1, name="Ada")
        session.add(Article(id=1, title="Notes", published=True, author=author))
        session.commit()

        [article] = client.payloads("articles", "save_objects")[0]
        assert article["author"]["name"] == "Ada"
        assert article["author"]["articles"][0]["title"] == "Notes"
        assert article["author"]["articles"][0]["author"] is None
        assert client.payloads("authors", "save_objects")[0][0]["name"] == "Ada"


class TestUpdate:
    def test_changed_fields_are_patched(self, session, client, article):
        article.title = "Hello again"
        session.commit()

        assert client.operations() == ["partial_update_objects"]
        [objects] = client.payloads("articles", "partial_update_objects")
        assert objects == [
            {"title": "Hello again", "excerpt": "Long enoug", "objectID": key(7)}
        ]

    def test_unpublishing_deletes(self, session, client, article):
        article.published = False
        session.commit()

        assert client.payloads("articles", "delete_objects") == [[key(7)]]

    def test_publishing_creates(self, session, client):
        article = Article(id=3, title="Later", published=False)
        session.add(article)
        session.commit()

        article.published = True
        session.commit()

        [objects] = client.payloads("articles", "save_objects")
        assert objects[0]["objectID"] == key(3)

    def test_primary_key_change_recreates(self, session, client, article):
        article.id = 9
        session.commit()

        [deleted] = client.payloads("articles", "delete_objects")
        [created] = client.payloads("articles", "save_objects")
        assert deleted == [key(7)]
        assert deserialize_key(created[0]["objectID"]) == {"id": 9}
        assert created[0]["title"] == "Hello"

    def test_rolled_back_update_is_not_sent(self, session, client, article):
        article.title = "Never mind"
        session.flush()
        session.rollback()

        session.commit()

        assert client.calls == []


class TestDelete:
    def test_delete_sends_key(self, session, client, article):
        session.delete(article)
        session.commit()

        assert client.payloads("articles", "delete_objects") == [[key(7)]]

    def test_unpublish_then_delete_in_one_transaction(self, session, client, article):
        article.published = False
        session.flush()
        session.delete(article)
        session.commit()

        assert client.payloads("articles", "delete_objects") == [[key(7)]]


@pytest.fixture
def seeded(session_factory):
    """Rows committed by an unsynchronized session, so nothing is loaded yet."""
    with session_factory() as seeding:
        seeding.add(Author(id=1, name="Ada"))
        seeding.add(Article(id=7, title="Hidden", published=False, author_id=1))
        seeding.add(Article(id=8, title="Shown", published=True, author_id=1))
        seeding.commit()


@pytest.mark.usefixtures("seeded")
class TestUnloadedRelations:
    def test_publishing_a_loaded_row_sends_full_record(self, session, client):
        session.get(Article, 7).published = True
        session.commit()

        [objects] = client.payloads("articles", "save_objects")
        assert objects[0]["objectID"] == key(7)
        assert objects[0]["author"]["name"] == "Ada"
        assert sorted(a["title"] for a in objects[0]["author"]["articles"]) == ["Hidden", "Shown"]

    def test_primary_key_change_of_a_loaded_row(self, session, client):
        session.get(Article, 8).id = 9
        session.commit()

        assert client.payloads("articles", "delete_objects") == [[key(8)]]
        [created] = client.payloads("articles", "save_objects")
        assert created[0]["objectID"] == key(9)
        assert created[0]["author"]["name"] == "Ada"

    def test_insert_with_foreign_key_only(self, session, client):
        session.add(Article(id=3, title="New", published=True, author_id=1))
        session.commit()

        [objects] = client.payloads("articles", "save_objects")
        assert objects[0]["objectID"] == key(3)
        assert objects[0]["author"]["name"] == "Ada"

    def test_session_stays_usable_after_the_commit_phase(self, session, client):
        session.add(Article(id=3, title="First", published=True, author_id=1))
        session.commit()
        session.get(Article, 3).title = "Second"
        session.commit()

        [patched] = client.payloads("articles", "partial_update_objects")
        assert patched == [{"title": "Second", "excerpt": "", "objectID": key(3)}]


class TestSynchronizer:
    def test_expiring_sessions_are_rejected(self, engine, indexer):
        session = sessionmaker(engine)()

        with pytest.raises(ConfigurationError):
            SessionSynchronizer(session, indexer.new_pipeline())

        session.close()

    def test_unregister_stops_syncing(self, synchronizer, session, client):
        synchronizer.unregister()

        session.add(Article(id=1, title="Quiet", published=True))
        session.commit()

        assert client.calls == []
