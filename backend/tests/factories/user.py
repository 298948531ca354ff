"""Factory Boy definition for :class:`sessionauth.models.user.User`."""

from __future__ import annotations

import factory
from sessionauth.models.user import User

from tests.factories import BaseFactory

DEFAULT_PASSWORD = "Passw0rd!"


class UserFactory(BaseFactory):
    """Build persisted :class:`User` instances with a hashed password."""

    class Meta:
        model = User

    id = None  # let autoincrement handle it
    username = factory.Sequence(lambda n: f"user{n}")
    name = factory.Faker("first_name")
    email = factory.Sequence(lambda n: f"user{n}@example.com")
    password = DEFAULT_PASSWORD  # model setter hashes
