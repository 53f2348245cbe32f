from passlib.context import CryptContext

# Shared by user passwords and OAuth client secrets
_pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_secret(secret: str) -> str:
    return _pwd_context.hash(secret)


def verify_secret(plain: str, hashed: str | None) -> bool:
    if not plain or not hashed:
        return False
    return _pwd_context.verify(plain, hashed)
