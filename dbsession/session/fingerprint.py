"""
Session Fingerprint

Binds a stored session to the client that wrote it. The digest covers the
user agent and/or client address (when enabled) plus a server-side secret, so a
stolen session id presented by a different client does not match.
"""
from typing import Optional
from dbsession.logging import getLogger
from dbsession.support import Crypto

logger = getLogger(__name__)


class Fingerprint:
    """
    Identity hash for the current client

    The value is recomputed whenever the secret, the lock flags or the client
    attributes change, and is stable otherwise.

    Example:
        fingerprint = Fingerprint('s3cret', lock_to_user_agent=True)
        fingerprint.set_client(user_agent=request.headers.get('user-agent'))
        fingerprint.value  # 64 hex characters
    """

    def __init__(
        self,
        security_code: str = '',
        lock_to_user_agent: bool = False,
        lock_to_ip: bool = False,
        user_agent: Optional[str] = None,
        remote_addr: Optional[str] = None
    ):
        self._security_code = self._resolve_security_code(security_code)
        self._lock_to_user_agent = lock_to_user_agent
        self._lock_to_ip = lock_to_ip
        self._user_agent = user_agent
        self._remote_addr = remote_addr
        self._value = self._generate()

    @staticmethod
    def compute(secret: str, user_agent: Optional[str] = None, remote_addr: Optional[str] = None) -> str:
        """
        Compute a fingerprint digest

        Args:
            secret: Server-side security code
            user_agent: Client user agent, or None when not bound
            remote_addr: Client address, or None when not bound

        Returns:
            SHA256 hex digest of agent + address + secret
        """
        material = ''
        if user_agent is not None:
            material += user_agent
        if remote_addr is not None:
            material += remote_addr
        material += secret

        return Crypto.sha256(material)

    @staticmethod
    def _resolve_security_code(security_code: str) -> str:
        from dbsession.defaults import DEFAULT_SECURITY_CODE, PLACEHOLDER_SECURITY_CODE

        if not security_code or security_code == PLACEHOLDER_SECURITY_CODE:
            logger.warning("No session security code configured, using the built-in default")
            return DEFAULT_SECURITY_CODE

        return security_code

    def _generate(self) -> str:
        user_agent = self._user_agent if self._lock_to_user_agent else None
        remote_addr = self._remote_addr if self._lock_to_ip else None
        return self.compute(self._security_code, user_agent, remote_addr)

    @property
    def value(self) -> str:
        """Current fingerprint digest"""
        return self._value

    @property
    def lock_to_user_agent(self) -> bool:
        return self._lock_to_user_agent

    @property
    def lock_to_ip(self) -> bool:
        return self._lock_to_ip

    def set_security_code(self, security_code: str) -> 'Fingerprint':
        self._security_code = self._resolve_security_code(security_code)
        self._value = self._generate()
        return self

    def set_lock_to_user_agent(self, lock_to_user_agent: bool) -> 'Fingerprint':
        self._lock_to_user_agent = lock_to_user_agent
        self._value = self._generate()
        return self

    def set_lock_to_ip(self, lock_to_ip: bool) -> 'Fingerprint':
        self._lock_to_ip = lock_to_ip
        self._value = self._generate()
        return self

    def set_client(self, user_agent: Optional[str] = None, remote_addr: Optional[str] = None) -> 'Fingerprint':
        """
        Set the attributes of the client making the current request

        Args:
            user_agent: User-Agent header value
            remote_addr: Client IP address
        """
        self._user_agent = user_agent
        self._remote_addr = remote_addr
        self._value = self._generate()
        return self

    def __repr__(self) -> str:
        return f"<Fingerprint {self._value[:8]}... agent={self._lock_to_user_agent} ip={self._lock_to_ip}>"
