"""
Flash Variables

A flash variable lives in the session for exactly one request after the one
that set it. The bag tracks a request counter per variable; the counters are
persisted through their own channel next to the session variables, never as
a session variable themselves.
"""
from typing import Any, Dict, Iterable, Optional


class FlashBag:
    """
    Request counters for flash variables

    Usage:
        bag = FlashBag(variables)
        bag.set('status', 'Saved!')   # counter 0, visible now
        bag.on_request_boundary()     # counter 1, still visible next request
        bag.on_request_boundary()     # counter 2, removed from variables
    """

    def __init__(self, variables: Optional[Dict[str, Any]] = None):
        """
        Args:
            variables: Live session variable map the flash values are written into
        """
        self._variables: Dict[str, Any] = variables if variables is not None else {}
        self._counters: Dict[str, int] = {}

    def bind(self, variables: Dict[str, Any]) -> None:
        """Attach the bag to a (new) live variable map"""
        self._variables = variables

    def set(self, name: str, value: Any) -> None:
        """
        Store a flash variable

        Args:
            name: Session variable name
            value: Value, visible until the end of the next request
        """
        self._variables[name] = value
        self._counters[name] = 0

    def now(self, name: str, value: Any) -> None:
        """Store a flash variable for the current request only"""
        self._variables[name] = value
        self._counters[name] = 1

    def on_request_boundary(self) -> None:
        """Advance all counters; drop variables past their one extra request"""
        for name in list(self._counters):
            self._counters[name] += 1

            if self._counters[name] > 1:
                self._variables.pop(name, None)
                del self._counters[name]

    def keep(self, names: Optional[Iterable[str]] = None) -> None:
        """
        Keep flash variables for one more request

        Args:
            names: Variables to keep (None keeps all)
        """
        targets = list(self._counters) if names is None else names

        for name in targets:
            if name in self._counters:
                self._counters[name] = 0

    def reflash(self) -> None:
        """Keep every flash variable for one more request"""
        self.keep()

    def load(self, counters: Optional[Dict[str, int]]) -> None:
        """
        Restore counters persisted by the previous request

        Args:
            counters: Mapping of variable name to request counter
        """
        self._counters = {
            str(name): int(counter)
            for name, counter in (counters or {}).items()
        }

    def dump(self) -> Dict[str, int]:
        """Counters to persist with the session"""
        return dict(self._counters)

    def clear(self) -> None:
        """Stop tracking all flash variables (the values stay)"""
        self._counters.clear()

    def has(self, name: str) -> bool:
        return name in self._counters

    def __len__(self) -> int:
        return len(self._counters)

    def __repr__(self) -> str:
        return f"<FlashBag {self._counters!r}>"
