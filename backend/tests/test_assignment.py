"""Tests for the sticky model assignment service"""

import random
from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy import update

from multirec.errors import BackingStoreUnavailable, InvalidArgument, NoActiveModels
from multirec.models import RecommendationModel, User
from multirec.services.assignment import AssignmentService
from multirec.stores import AssignmentStore, InMemoryAssignmentStore, SqlAssignmentStore
from multirec.utils.database import create_store_engine, create_session_factory, init_db


@pytest.fixture
def engine():
    """Create a test database with the default models"""

    engine = create_store_engine("sqlite://")
    init_db(engine)

    db = create_session_factory(engine)()
    db.add_all([User(id=i, username=f"user{i}", email=f"user{i}@example.com") for i in range(1, 6)])
    db.commit()
    db.close()

    yield engine

    engine.dispose()


@pytest.fixture
def store(engine):
    return SqlAssignmentStore(engine)


@pytest.fixture
def service(store):
    return AssignmentService(store, rng=random.Random(7))


def set_active(engine, active_ids):
    db = create_session_factory(engine)()
    db.execute(update(RecommendationModel).values(is_active=False))
    db.execute(
        update(RecommendationModel)
        .where(RecommendationModel.id.in_(active_ids))
        .values(is_active=True)
    )
    db.commit()
    db.close()


class UnavailableAssignmentStore(AssignmentStore):
    """Assignment store whose backend is down"""

    def _fail(self, *args, **kwargs):
        raise BackingStoreUnavailable("assignment")

    get = _fail
    insert_if_absent = _fail
    insert_many_if_absent = _fail
    list_models = _fail
    user_ids = _fail
    assignment_counts = _fail


def test_assignment_is_sticky(service):
    """Second call returns the same model"""

    first = service.get_or_assign_model(1)
    second = service.get_or_assign_model(1)

    assert first.model_id in (1, 2, 3)
    assert first.model_name in ("collaborative", "content", "graph")
    assert second.model_id == first.model_id
    assert not first.degraded


def test_assignment_persisted(service, store):
    """The assignment is readable from the store once the call returns"""

    assignment = service.get_or_assign_model(3)

    stored = store.get(3)
    assert stored is not None
    assert stored.model_id == assignment.model_id


@pytest.mark.parametrize("user_id", [0, -1, True, "1", 1.5, None])
def test_invalid_user_id(service, user_id):
    """Only positive integers are user ids"""

    with pytest.raises(InvalidArgument):
        service.get_or_assign_model(user_id)


def test_only_active_models_assigned(engine, service):
    """Inactive models are never freshly assigned"""

    set_active(engine, [2])

    for user_id in range(10, 30):
        assert service.get_or_assign_model(user_id).model_id == 2


def test_existing_assignment_to_inactive_model_kept(engine, service, store):
    """Deactivating a model does not move its users"""

    store.insert_if_absent(1, 3)
    set_active(engine, [1])

    assert service.get_or_assign_model(1).model_id == 3


def test_no_active_models(engine, service):
    """A fresh assignment needs at least one active model"""

    set_active(engine, [])

    with pytest.raises(NoActiveModels):
        service.get_or_assign_model(1)


def test_insert_if_absent_keeps_first_writer(store):
    """The atomic insert never overwrites"""

    assert store.insert_if_absent(1, 1).model_id == 1
    assert store.insert_if_absent(1, 2).model_id == 1


def test_concurrent_first_requests_converge(tmp_path):
    """Parallel first calls for one user all see the single stored model"""

    engine = create_store_engine(f"sqlite:///{tmp_path / 'assignments.db'}")
    init_db(engine)
    store = SqlAssignmentStore(engine)

    def assign(seed):
        return AssignmentService(store, rng=random.Random(seed)).get_or_assign_model(42).model_id

    with ThreadPoolExecutor(max_workers=8) as executor:
        model_ids = list(executor.map(assign, range(16)))

    assert len(set(model_ids)) == 1
    assert store.get(42).model_id == model_ids[0]

    engine.dispose()


def test_assign_all_even_round_robin(service, store):
    """Users in ascending id order cycle through the models"""

    result = service.assign_all_even([1, 2, 3])

    assert result.assigned == 5
    assert result.total == 5
    assert result.skipped == 0
    assert [store.get(user_id).model_id for user_id in range(1, 6)] == [1, 2, 3, 1, 2]


def test_assign_all_even_is_rerunnable(service, store):
    """A second run assigns nobody and changes nothing"""

    service.assign_all_even([1, 2, 3])
    before = {user_id: store.get(user_id).model_id for user_id in range(1, 6)}

    result = service.assign_all_even([1, 2, 3])

    assert result.assigned == 0
    assert result.skipped == 5
    assert {user_id: store.get(user_id).model_id for user_id in range(1, 6)} == before


def test_assign_all_even_keeps_sticky_assignments(service, store):
    """Users already assigned are skipped"""

    store.insert_if_absent(2, 3)

    result = service.assign_all_even([1])

    assert result.assigned == 4
    assert store.get(2).model_id == 3


@pytest.mark.parametrize("models", [[], [0], [-1, 2], [9]])
def test_assign_all_even_invalid_models(service, models):
    """Empty, non-positive and unknown model lists are rejected"""

    with pytest.raises(InvalidArgument):
        service.assign_all_even(models)


def test_degraded_mode_uses_memory():
    """A dead store still yields a stable, flagged assignment"""

    service = AssignmentService(UnavailableAssignmentStore(), fallback_store=InMemoryAssignmentStore())

    first = service.get_or_assign_model(5)
    second = service.get_or_assign_model(5)

    assert first.degraded
    assert second.model_id == first.model_id
    assert first.model_name in ("collaborative", "content", "graph")


def test_degraded_bulk_assignment_fails():
    """Bulk assignment is a write and surfaces the outage"""

    service = AssignmentService(UnavailableAssignmentStore())

    with pytest.raises(BackingStoreUnavailable):
        service.assign_all_even([1, 2, 3])


def test_resolve_model(service):
    """Strategy keys resolve to registered models"""

    assert service.resolve_model("collab").model_id == 1
    assert service.resolve_model("content").model_id == 2
    assert service.resolve_model("graph").model_id == 3
    assert service.resolve_model("hybrid") is None


def test_assignment_counts(service):
    """Users per model"""

    service.assign_all_even([1, 2])
    stats = service.assignment_counts()

    assert stats["total_users"] == 5
    assert {m["model_id"]: m["users"] for m in stats["models"]} == {1: 3, 2: 2}
    assert not stats["degraded"]
