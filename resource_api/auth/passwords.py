"""
Password capability.

Used by account endpoints; the resource controller never hashes anything.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from . import security


class PasswordAdapter(ABC):
    @abstractmethod
    def hash(self, plain_password: str) -> str:
        ...

    @abstractmethod
    def verify(self, plain_password: str, password_hash: str) -> bool:
        ...


class BcryptPasswordAdapter(PasswordAdapter):
    def __init__(self, rounds: int = 12) -> None:
        self.rounds = rounds

    def hash(self, plain_password: str) -> str:
        return security.hash_password(plain_password, rounds=self.rounds)

    def verify(self, plain_password: str, password_hash: str) -> bool:
        return security.verify_password(plain_password, password_hash)
