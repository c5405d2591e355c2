import bcrypt

from ticketpos.utils import config


def hash_password(password: str) -> str:
    """Salted bcrypt hash of ``password``, as text for the users table."""
    salt = bcrypt.gensalt(rounds=config.BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # stored value is not a bcrypt hash
        return False
