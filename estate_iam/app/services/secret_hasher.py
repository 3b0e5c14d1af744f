from abc import ABC, abstractmethod


class ISecretHasher(ABC):
    """One-way hashing of passwords, registration codes and reset tickets"""

    @abstractmethod
    def hash(self, plaintext: str) -> str:
        """Salted slow hash for passwords and OTP codes"""
        pass

    @abstractmethod
    def verify(self, plaintext: str, hashed: str) -> bool:
        """Check a plaintext against a hash produced by ``hash``"""
        pass

    @abstractmethod
    def digest(self, plaintext: str) -> str:
        """Deterministic hash, used where the stored value must be looked up"""
        pass
