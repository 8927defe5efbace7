import secrets

from pwdlib import PasswordHash

password_hash = PasswordHash.recommended()

# Verified against when the email is unknown so that lookups take as long
# as real checks
DUMMY_HASH = password_hash.hash(secrets.token_urlsafe(16))


def get_password_hash(password: str) -> str:
    return password_hash.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> tuple[bool, str | None]:
    """Return whether the password matches and, if the hash is outdated, its replacement."""
    return password_hash.verify_and_update(plain_password, hashed_password)
