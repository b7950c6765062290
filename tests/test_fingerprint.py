import hashlib

from dbsession.defaults import DEFAULT_SECURITY_CODE, PLACEHOLDER_SECURITY_CODE
from dbsession.session.fingerprint import Fingerprint


def sha256(text: str) -> str:
    return hashlib.sha256(text.encode()).hexdigest()


def test_compute_concatenates_agent_address_and_secret():
    """Test the digest covers agent, address and secret in that order."""
    assert Fingerprint.compute("s3cret", "Mozilla/5.0", "10.0.0.1") == sha256("Mozilla/5.010.0.0.1s3cret")
    assert Fingerprint.compute("s3cret") == sha256("s3cret")


def test_unbound_client_attributes_are_ignored():
    """Test agent and address only count when their lock flag is on."""
    first = Fingerprint("s3cret", user_agent="agent-a", remote_addr="10.0.0.1")
    second = Fingerprint("s3cret", user_agent="agent-b", remote_addr="10.0.0.2")

    assert first.value == second.value == sha256("s3cret")


def test_bound_user_agent_changes_fingerprint():
    """Test a different user agent gives a different fingerprint when bound."""
    first = Fingerprint("s3cret", lock_to_user_agent=True, user_agent="agent-a")
    second = Fingerprint("s3cret", lock_to_user_agent=True, user_agent="agent-b")

    assert first.value != second.value
    assert first.value == sha256("agent-as3cret")


def test_bound_ip_changes_fingerprint():
    first = Fingerprint("s3cret", lock_to_ip=True, remote_addr="10.0.0.1")
    second = Fingerprint("s3cret", lock_to_ip=True, remote_addr="10.0.0.2")

    assert first.value != second.value


def test_fingerprint_is_stable():
    fingerprint = Fingerprint("s3cret", lock_to_user_agent=True, user_agent="agent")

    assert fingerprint.value == fingerprint.value
    assert len(fingerprint.value) == 64


def test_missing_or_placeholder_secret_uses_default():
    """Test empty and placeholder security codes fall back to the built-in secret."""
    expected = sha256(DEFAULT_SECURITY_CODE)

    assert Fingerprint("").value == expected
    assert Fingerprint(PLACEHOLDER_SECURITY_CODE).value == expected


def test_setters_recompute_value():
    """Test every setter recomputes the digest."""
    fingerprint = Fingerprint("s3cret")
    original = fingerprint.value

    fingerprint.set_security_code("other")
    assert fingerprint.value == sha256("other")

    fingerprint.set_client(user_agent="agent", remote_addr="10.0.0.1")
    assert fingerprint.value == sha256("other")

    fingerprint.set_lock_to_user_agent(True)
    assert fingerprint.value == sha256("agentother")

    fingerprint.set_lock_to_ip(True)
    assert fingerprint.value == sha256("agent10.0.0.1other")

    fingerprint.set_security_code("s3cret").set_lock_to_user_agent(False).set_lock_to_ip(False)
    assert fingerprint.value == original
