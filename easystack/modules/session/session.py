from typing import Optional


class SessionState:
    """
    Session secret of one node instance.

    Holds the client secret extracted by the most recent successful deploy.
    Lives in memory only; a process restart starts unset.
    """

    def __init__(self, secret: Optional[str] = None):
        self._secret = secret or None

    def get(self) -> Optional[str]:
        """Current secret, or None when unset."""
        return self._secret

    def set(self, secret: Optional[str]) -> None:
        """
        Replace the secret.

        Args:
            secret: New secret; None or empty unsets it
        """
        self._secret = secret or None

    def clear(self) -> None:
        self._secret = None

    @property
    def is_set(self) -> bool:
        return self._secret is not None

    def __repr__(self) -> str:
        return f"SessionState(is_set={self.is_set})"
