from domain.user.service import PasswordService, SEED_PASSWORD_HASH, seed_users


def test_digest_is_lowercase_sha256_hex():
    digest = PasswordService.hash_password("123456")
    assert digest == "8d969eef6ecad3c29a3a629280e686cf0c3f5d5a86aff3ca12020c923adc6c92"
    assert digest == SEED_PASSWORD_HASH
    assert len(digest) == 64


def test_digest_is_deterministic_and_unsalted():
    assert PasswordService.hash_password("abc") == PasswordService.hash_password("abc")
    assert PasswordService.hash_password("abc") != PasswordService.hash_password("abd")


def test_digest_handles_utf8():
    digest = PasswordService.hash_password("矿山")
    assert len(digest) == 64
    assert digest == digest.lower()


def test_verify_password():
    assert PasswordService.verify_password(SEED_PASSWORD_HASH, SEED_PASSWORD_HASH)
    assert not PasswordService.verify_password("0" * 64, SEED_PASSWORD_HASH)


def test_seed_accounts():
    users = {u.username: u for u in seed_users()}
    assert set(users) == {"admin", "worker"}
    assert users["admin"].is_admin and users["admin"].is_active
    assert not users["worker"].is_admin and users["worker"].is_active
    assert all(u.password_hash == SEED_PASSWORD_HASH for u in users.values())
