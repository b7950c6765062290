"""
Crypto - Centralized hashing and token generation
Provides session id generation and the digests used for fingerprints and lock names
"""
import secrets
import hashlib


class Crypto:
    """Centralized cryptography helper"""

    # === Random Token Generation ===

    @staticmethod
    def generate_token(length: int = 32) -> str:
        """
        Generate URL-safe random token

        Args:
            length: Length of token in bytes (default: 32)

        Returns:
            URL-safe random string
        """
        return secrets.token_urlsafe(length)

    # === Hash Functions ===

    @staticmethod
    def sha256(data: str) -> str:
        """
        Generate SHA256 hash of string

        Args:
            data: String to hash

        Returns:
            SHA256 hex digest
        """
        return hashlib.sha256(data.encode()).hexdigest()

    @staticmethod
    def sha1(data: str) -> str:
        """
        Generate SHA1 hash of string

        Only used where the digest length matters more than its strength
        (lock names must stay within MySQL's 64 character limit).

        Args:
            data: String to hash

        Returns:
            SHA1 hex digest (40 characters)
        """
        return hashlib.sha1(data.encode()).hexdigest()
