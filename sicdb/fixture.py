"""Sample encrypted databases for tests that need a realistic payload."""

from __future__ import annotations

from .encrypt import encrypt
from .model import Card, Database, Field, Label, marshal


def sample_database() -> Database:
    """Return a small database with one label and one card."""
    return Database(
        labels=[Label(id="1", name="Test")],
        cards=[
            Card(
                id="100",
                title="Sample",
                fields=[
                    Field(name="Login", type="login", text="user@example.com"),
                    Field(name="Password", type="password", text="password"),
                ],
            )
        ],
    )


def generate_test_db(password: str) -> bytes:
    """Return the sample database encrypted under ``password``."""
    return encrypt(marshal(sample_database()), password)