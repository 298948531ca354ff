import pytest
from sessionauth.repositories.user import UserRepository
from sessionauth.services._shared.errors import ConflictError
from sessionauth.services.identity.dto import NewUserIn, UserPublicOut
from sessionauth.services.identity.service import IdentityService

from tests.factories.user import DEFAULT_PASSWORD, UserFactory


class TestIdentityService:
    """Validate IdentityService behaviours for the User aggregate."""

    @pytest.fixture()
    def service(self, app) -> IdentityService:
        """Return a fresh service instance per test."""
        return IdentityService()

    @pytest.fixture()
    def repo(self, session) -> UserRepository:
        """Provide repository bound to the app-scoped session."""
        return UserRepository(session=session)

    # --------------------------------------------------------------------- #
    # Creation
    # --------------------------------------------------------------------- #

    def test_create_user_hashes_password(self, service, repo):
        """Given valid data, a new user is stored with a hashed password."""
        record = service.create_user(
            NewUserIn(
                username="newuser",
                name="New",
                email="New@Example.com",
                password="Passw0rd!",
            )
        )

        assert record.email == "new@example.com"
        assert record.password_hash != "Passw0rd!"
        stored = repo.get_by_username("newuser")
        assert stored is not None
        assert stored.verify_password("Passw0rd!")

    @pytest.mark.parametrize(
        ("field", "overrides"),
        [
            ("email", {"email": "dup@example.com"}),
            ("username", {"username": "dup"}),
        ],
    )
    def test_create_user_maps_unique_violations(self, service, field, overrides):
        """A unique-constraint race surfaces as ConflictError naming the field."""
        UserFactory(username="dup", email="dup@example.com")
        fields = {
            "username": "fresh",
            "name": "Fresh",
            "email": "fresh@example.com",
            "password": "Passw0rd!",
            **overrides,
        }

        with pytest.raises(ConflictError) as excinfo:
            service.create_user(NewUserIn(**fields))
        assert excinfo.value.field == field

    # --------------------------------------------------------------------- #
    # Lookups
    # --------------------------------------------------------------------- #

    def test_user_exists_by_field(self, service):
        UserFactory(username="taken", email="taken@example.com")

        assert service.user_exists("email", "TAKEN@example.com") is True
        assert service.user_exists("username", "taken") is True
        assert service.user_exists("username", "free") is False

    def test_user_exists_rejects_unknown_field(self, service):
        with pytest.raises(ValueError):
            service.user_exists("name", "x")  # type: ignore[arg-type]

    def test_find_and_get_return_detached_records(self, service):
        user = UserFactory(username="bob")

        by_name = service.find_user_by_username("bob")
        by_id = service.get_user(user.id)

        assert by_name == by_id
        assert by_name is not None and by_name.id == user.id
        assert service.find_user_by_username("nobody") is None
        assert service.get_user(9999) is None

    # --------------------------------------------------------------------- #
    # Passwords & projection
    # --------------------------------------------------------------------- #

    def test_verify_password(self, service):
        UserFactory(username="bob")
        record = service.find_user_by_username("bob")
        assert record is not None

        assert service.verify_password(DEFAULT_PASSWORD, record.password_hash) is True
        assert service.verify_password("nope", record.password_hash) is False
        assert service.verify_password(DEFAULT_PASSWORD, "") is False

    def test_project_public_strips_hash(self, service):
        UserFactory(username="bob", name="Bob", email="bob@example.com")
        record = service.find_user_by_username("bob")
        assert record is not None

        public = service.project_public(record)

        assert public == UserPublicOut(
            id=record.id, username="bob", name="Bob", email="bob@example.com"
        )
