import pytest
from protean.integrations.pytest import DomainFixture
from storefront.config import Settings
from storefront.guest.cart_store import GuestCartStore
from storefront.guest.wishlist_store import GuestWishlistStore
from storefront.notifications import RecordingNotifier
from storefront.remote.fake_adapter import FakeBackend, FakeCartService, FakeWishlistService
from storefront.session import SessionStore
from storefront.shared.product import ProductSnapshot
from storefront.storage.memory_adapter import MemoryStorage


@pytest.fixture(scope="session")
def storefront_bed():
    from storefront.domain import storefront

    bed = DomainFixture(storefront)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(storefront_bed):
    with storefront_bed.domain_context():
        yield


@pytest.fixture()
def settings():
    return Settings(storage="memory", remote="fake", merge_delay=0.0)


@pytest.fixture()
def storage():
    return MemoryStorage()


@pytest.fixture()
def notifier():
    return RecordingNotifier()


@pytest.fixture()
def session(storage):
    return SessionStore(storage)


@pytest.fixture()
def guest_cart(storage):
    return GuestCartStore(storage)


@pytest.fixture()
def guest_wishlist(storage):
    return GuestWishlistStore(storage)


@pytest.fixture()
def backend():
    return FakeBackend()


@pytest.fixture()
def cart_service(backend, session):
    return FakeCartService(backend, lambda: session.token)


@pytest.fixture()
def wishlist_service(backend, session):
    return FakeWishlistService(backend, lambda: session.token)


@pytest.fixture()
def tee():
    return ProductSnapshot.build("p1", price=20.0, name="Basic Tee", image="tee.jpg", stock=5)


@pytest.fixture()
def hoodie_m():
    return ProductSnapshot.build(
        "p2", price=45.0, name="Hoodie", stock=3, options={"size": "M", "color": "black"}
    )


@pytest.fixture()
def hoodie_l():
    return ProductSnapshot.build(
        "p2", price=45.0, name="Hoodie", stock=2, options={"color": "black", "size": "L"}
    )
