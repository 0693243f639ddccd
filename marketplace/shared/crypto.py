"""Symmetric encryption for sensitive fields stored in documents (bank numbers)"""

import base64
import hashlib
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken

from ..config import SECRET_KEY


def get_fernet_key():
    key = hashlib.sha256(SECRET_KEY.encode()).digest()
    return base64.urlsafe_b64encode(key)


cipher = Fernet(get_fernet_key())


def encrypt_value(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    return cipher.encrypt(value.encode()).decode()


def decrypt_value(token: Optional[str]) -> Optional[str]:
    """Decrypt a stored value; None when missing or encrypted under another key"""
    if not token:
        return None
    try:
        return cipher.decrypt(token.encode()).decode()
    except InvalidToken:
        return None


def last_four(value: Optional[str]) -> Optional[str]:
    return value[-4:] if value else None
