import pytest

from mentorship_sync.database import create_db_and_tables, create_session_factory, get_engine
from mentorship_sync.identity import CurrentUser, UserSession
from mentorship_sync.models import User, UserRole
from mentorship_sync.services import MentorshipService, ProfileService, SubscriptionService
from mentorship_sync.store import SqlRecordStore


@pytest.fixture
def engine(tmp_path):
    engine = get_engine(f"sqlite:///{tmp_path / 'mentorship.db'}")
    create_db_and_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def store(session_factory):
    return SqlRecordStore(session_factory, max_attempts=5)


@pytest.fixture
def make_user(session_factory, store):
    """Creates a user row and its profile, returning the CurrentUser identity."""

    async def _make(username: str, first_name: str, last_name: str, role: UserRole, with_profile: bool = True):
        with session_factory() as db:
            user = User(
                username=username,
                hashed_password="not-a-real-hash",
                first_name=first_name,
                last_name=last_name,
                role=role.value,
            )
            db.add(user)
            db.commit()
            identity = CurrentUser(id=user.id, first_name=first_name, last_name=last_name, role=role)
        if with_profile:
            await ProfileService(store).initialize_profile(identity)
        return identity

    return _make


@pytest.fixture
async def mentor(make_user):
    return await make_user("grace", "Grace", "Hopper", UserRole.MENTOR)


@pytest.fixture
async def mentee(make_user):
    return await make_user("ada", "Ada", "Lovelace", UserRole.MENTEE)


@pytest.fixture
def mentee_service(store, mentee):
    return MentorshipService(store, UserSession(mentee))


@pytest.fixture
def mentor_service(store, mentor):
    return MentorshipService(store, UserSession(mentor))


@pytest.fixture
def subscriptions(store):
    return SubscriptionService(store)
