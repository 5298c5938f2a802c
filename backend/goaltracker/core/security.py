import base64
import binascii

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str | None) -> bool:
    if not hashed_password:
        return False
    if pwd_context.identify(hashed_password) is None:
        # Rows written by the first web client hold base64(password)
        try:
            return base64.b64decode(hashed_password, validate=True).decode("utf-8") == plain_password
        except (binascii.Error, UnicodeDecodeError):
            return False
    return pwd_context.verify(plain_password, hashed_password)
