# tests/test_utils.py
import pytest

from auth_service import utils


@pytest.mark.parametrize("raw, expected", [
    (None, 10),
    ("12", 12),
    ("4", 4),
    ("3", 10),
    ("32", 10),
    ("fast", 10),
])
def test_bcrypt_rounds_from_env(monkeypatch, raw, expected):
    if raw is None:
        monkeypatch.delenv("BCRYPT_ROUNDS", raising=False)
    else:
        monkeypatch.setenv("BCRYPT_ROUNDS", raw)
    assert utils._read_bcrypt_rounds() == expected


def test_hash_uses_configured_cost():
    context = utils.build_password_context(5)
    hashed = utils.get_password_hash("secret1", context)

    assert hashed.startswith("$2b$05$")
    assert utils.verify_password("secret1", hashed, context)
    assert not utils.verify_password("secret2", hashed, context)


def test_normalize_email():
    assert utils.normalize_email("Alice@Example.COM") == "alice@example.com"


def test_generate_user_id_avoids_existing(monkeypatch):
    ids = iter(["taken", "taken", "fresh"])

    class FakeUUID:
        def __init__(self, value):
            self.hex = value

    monkeypatch.setattr(utils.uuid, "uuid4", lambda: FakeUUID(next(ids)))
    assert utils.generate_user_id(["taken"]) == "fresh"
