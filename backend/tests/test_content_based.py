"""Tests for Content-Based Service"""

import pytest

from multirec.models import Base, User, Product, Interaction
from multirec.services.content_based import ContentBasedService
from multirec.stores import SqlInteractionStore
from multirec.utils.database import create_store_engine, create_session_factory
from multirec.utils.keywords import extract_keywords


@pytest.fixture
def engine():
    """Create a test database"""

    engine = create_store_engine("sqlite://")
    Base.metadata.create_all(engine)

    yield engine

    engine.dispose()


@pytest.fixture
def sample_data(engine):
    """Create sample catalogue and history"""

    db = create_session_factory(engine)()

    db.add_all([User(id=i, username=f"user{i}", email=f"user{i}@example.com") for i in (1, 2)])
    db.add_all([
        Product(id="P1", name="Dragon Tale", category="Fiction", author="Ann",
                tags=["dragon", "magic"], popularity_score=1.0, avg_rating=4.0, stock=3),
        Product(id="P2", name="Wizard School", category="Fiction", author="Bob",
                tags=["magic"], popularity_score=0.5, stock=3),
        Product(id="P3", name="Star Maps", category="Science", author="Ann",
                tags=["space"], popularity_score=2.0, stock=3),
        Product(id="P4", name="Quantum Notes", category="Science", author="Cid",
                tags=["physics"], popularity_score=0.0, stock=3),
        Product(id="P5", name="Dragon Eggs", category="Fiction", author="Dee",
                tags=["dragon"], popularity_score=9.0, stock=0),
    ])
    db.add_all([
        Interaction(user_id=1, product_id="P1", interaction_type="purchase"),
        Interaction(user_id=2, product_id="P4", interaction_type="view"),
    ])

    db.commit()
    db.close()


@pytest.fixture
def service(engine, sample_data):
    return ContentBasedService(SqlInteractionStore(engine))


def test_build_profile(service):
    """Profile collects categories, authors and tags of interacted products"""

    profile = service.build_profile(1)

    assert profile.purchased == {"P1"}
    assert profile.categories == {"Fiction"}
    assert profile.authors == {"Ann"}
    assert profile.tags == {"dragon", "magic"}
    assert profile.has_history


def test_history_without_attributes_still_scored(engine):
    """A viewed product with no category, author or keywords keeps the content tier"""

    db = create_session_factory(engine)()
    db.add(User(id=1, username="user1", email="user1@example.com"))
    db.add_all([
        Product(id="X", name="A B", popularity_score=50.0, stock=1),
        Product(id="Y", name="Zed", popularity_score=1.0, stock=1),
    ])
    db.add(Interaction(user_id=1, product_id="X", interaction_type="view"))
    db.commit()
    db.close()

    result = ContentBasedService(SqlInteractionStore(engine)).score(1, 5)

    assert result.tier == "content_match"
    assert [c.product_id for c in result.candidates] == ["Y"]


def test_content_match_scores(service):
    """Category +3, author +2, one point per shared tag, plus popularity"""

    result = service.score(1, 10)

    assert result.tier == "content_match"
    scored = [(c.product_id, c.score) for c in result.candidates]
    # P2: 0.5 + 3 (Fiction) + 1 (magic); P3: 2.0 + 2 (Ann); P4 scores 0; P5 is out of stock
    assert scored == [("P2", 4.5), ("P3", 4.0)]


def test_views_count_as_interest(service):
    """A viewed product shapes the profile and is not recommended back"""

    result = service.score(2, 10)

    assert result.tier == "content_match"
    ids = [c.product_id for c in result.candidates]
    assert ids == ["P3", "P1", "P2"]
    assert "P4" not in ids


def test_cold_start_user_gets_popular_products(service):
    """Empty history falls back to popularity among in-stock products"""

    result = service.score(99, 6)

    assert result.tier == "popular"
    assert [c.product_id for c in result.candidates] == ["P3", "P1", "P2", "P4"]


def test_purchased_products_never_returned(service):
    """No strategy tier hands back something the user bought"""

    for limit in (1, 3, 10):
        ids = [c.product_id for c in service.score(1, limit).candidates]
        assert "P1" not in ids
        assert len(ids) <= limit
        assert len(ids) == len(set(ids))


def test_custom_weights(engine, sample_data):
    """Weights are configurable"""

    service = ContentBasedService(SqlInteractionStore(engine), category_weight=0.0, author_weight=10.0)
    scored = dict((c.product_id, c.score) for c in service.score(1, 10).candidates)

    assert scored["P3"] == 12.0
    assert scored["P2"] == 1.5


def test_mock_recommendations(service):
    """Mock list ids and prices"""

    mock = service.mock(1, 2)

    assert [c.product_id for c in mock] == ["CONTENT-101", "CONTENT-102"]
    assert [c.price for c in mock] == [24.99, 25.99]
    assert mock[0].author == "Mock Author"


def test_extract_keywords():
    """Lowercased title plus the start of the description, short words dropped"""

    keywords = extract_keywords("The Great Dragon", "A dragon and his great hoard of gold coins")

    assert keywords == ["great", "dragon", "hoard", "gold", "coins"]


def test_extract_keywords_limits():
    """At most max_keywords, and only the first description words"""

    description = " ".join(f"word{i}" for i in range(50))

    assert len(extract_keywords("Title", description, max_keywords=10)) == 10
    assert "word30" not in extract_keywords("", description, max_keywords=100)
