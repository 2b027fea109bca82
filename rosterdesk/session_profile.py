# session_profile.py
from __future__ import annotations

import base64
import json
import os
import time
from dataclasses import dataclass, asdict, field

from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from cryptography.hazmat.primitives import hashes
from cryptography.fernet import Fernet, InvalidToken


def _b64e(b: bytes) -> str:
    return base64.urlsafe_b64encode(b).decode("utf-8")


def _b64d(s: str) -> bytes:
    return base64.urlsafe_b64decode(s.encode("utf-8"))


def _new_salt(n: int = 16) -> bytes:
    return os.urandom(n)


def _derive_key(password: str, salt: bytes, rounds: int = 200_000) -> bytes:
    if not isinstance(password, str) or not password:
        raise ValueError("Password must be a non-empty string.")
    # 32-byte Fernet key via PBKDF2-HMAC-SHA256
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,
        salt=salt,
        iterations=rounds,
    )
    return base64.urlsafe_b64encode(kdf.derive(password.encode("utf-8")))


@dataclass
class TeacherProfile:
    # Versioning / crypto params
    version: int = 1
    kdf_rounds: int = 200_000
    salt_b64: str = field(default_factory=lambda: _b64e(_new_salt(16)))

    # Stored in clear
    supabase_url: str = ""
    teacher_id: str = ""
    ai_base_url: str = ""

    # Encrypted
    supabase_key_enc: str = ""
    ai_key_enc: str = ""

    created_at: float = field(default_factory=lambda: time.time())
    updated_at: float = field(default_factory=lambda: time.time())

    # -------------------------------
    # File I/O
    # -------------------------------
    @staticmethod
    def load(path: str) -> "TeacherProfile":
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        # unknown keys from newer/older versions are ignored
        tp = TeacherProfile()
        for k, v in data.items():
            if hasattr(tp, k):
                setattr(tp, k, v)
        return tp

    def save(self, path: str) -> None:
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        self.updated_at = time.time()
        with open(path, "w", encoding="utf-8") as f:
            json.dump(asdict(self), f, indent=2)

    # -------------------------------
    # Crypto helpers
    # -------------------------------
    def _fernet(self, password: str) -> Fernet:
        return Fernet(_derive_key(password, _b64d(self.salt_b64), self.kdf_rounds))

    def _encrypt(self, password: str, plaintext: str) -> str:
        if not plaintext:
            return ""
        return self._fernet(password).encrypt(plaintext.encode("utf-8")).decode("utf-8")

    def _decrypt(self, password: str, token: str) -> str:
        if not token:
            return ""
        try:
            return self._fernet(password).decrypt(token.encode("utf-8")).decode("utf-8")
        except InvalidToken as e:
            raise ValueError("Invalid profile password for decrypting this field.") from e

    def has_secrets(self) -> bool:
        return bool(self.supabase_key_enc or self.ai_key_enc)

    def check_password(self, password: str) -> None:
        """Raises ValueError when password cannot open the secrets already stored."""
        if self.supabase_key_enc:
            self.get_supabase_key(password)
        if self.ai_key_enc:
            self.get_ai_key(password)

    # -------------------------------
    # Secrets
    # -------------------------------
    def set_supabase_key(self, password: str, key: str) -> None:
        self.supabase_key_enc = self._encrypt(password, key)

    def get_supabase_key(self, password: str) -> str:
        return self._decrypt(password, self.supabase_key_enc)

    def set_ai_key(self, password: str, key: str) -> None:
        self.ai_key_enc = self._encrypt(password, key)

    def get_ai_key(self, password: str) -> str:
        return self._decrypt(password, self.ai_key_enc)

    # -------------------------------
    # Non-secret setters
    # -------------------------------
    def set_connection(self, supabase_url: str, teacher_id: str, ai_base_url: str = "") -> None:
        self.supabase_url = supabase_url or ""
        self.teacher_id = teacher_id or ""
        self.ai_base_url = ai_base_url or ""
