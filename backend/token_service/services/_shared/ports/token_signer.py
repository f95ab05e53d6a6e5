from __future__ import annotations

from typing import Any, Protocol


class TokenSigner(Protocol):
    """Port for producing and verifying compact signed tokens.

    Implementations pin a single algorithm: tokens whose header declares any
    other algorithm are rejected before signature verification.
    """

    algorithm: str

    def encode(self, claims: dict[str, Any]) -> str:
        """Sign ``claims`` and return the compact token.

        :raises SigningError: If the key or algorithm cannot produce a signature.
        """
        ...

    def decode(
        self,
        token: str,
        *,
        audience: str | None = None,
        issuer: str | None = None,
        required: tuple[str, ...] = ("exp",),
    ) -> dict[str, Any]:
        """Verify ``token`` and return its claims.

        :raises InvalidTokenError: On a foreign algorithm, bad signature,
            expiry, or a missing required claim.
        """
        ...
