# token_service/infra/jwt/jwt_signer.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import jwt as pyjwt

from token_service.core.config import SUPPORTED_JWT_ALGORITHMS
from token_service.services._shared.errors import InvalidTokenError, SigningError
from token_service.services._shared.ports import TokenSigner


@dataclass(slots=True)
class JWTSigner(TokenSigner):
    """
    PyJWT adapter signing compact JWS tokens with a symmetric key.

    :param secret_key: Shared HMAC key.
    :param algorithm: Pinned algorithm (``HS256``, ``HS384`` or ``HS512``).
    :param leeway: Clock skew tolerance in seconds for ``exp``/``nbf``.
    :raises SigningError: On an empty key or a non-HMAC algorithm.
    """

    secret_key: str = field(repr=False)
    algorithm: str = "HS256"
    leeway: int = 0

    def __post_init__(self) -> None:
        if not self.secret_key:
            raise SigningError("signing key is empty")
        if self.algorithm not in SUPPORTED_JWT_ALGORITHMS:
            raise SigningError(f"unsupported signing algorithm: {self.algorithm!r}")

    def encode(self, claims: dict[str, Any]) -> str:
        try:
            return pyjwt.encode(
                claims,
                self.secret_key,
                algorithm=self.algorithm,
                headers={"typ": "JWT"},
            )
        except (pyjwt.PyJWTError, TypeError, ValueError) as exc:
            raise SigningError(f"failed to sign token: {exc}") from exc

    def decode(
        self,
        token: str,
        *,
        audience: str | None = None,
        issuer: str | None = None,
        required: tuple[str, ...] = ("exp",),
    ) -> dict[str, Any]:
        # Pin the algorithm before touching the signature (rejects "none" and
        # HS/RS substitution alike).
        try:
            header = pyjwt.get_unverified_header(token)
        except pyjwt.PyJWTError as exc:
            raise InvalidTokenError(f"malformed token: {exc}") from exc
        alg = header.get("alg")
        if alg != self.algorithm:
            raise InvalidTokenError(f"unexpected signing method: {alg!r}")

        try:
            claims = pyjwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                audience=audience,
                issuer=issuer,
                leeway=self.leeway,
                options={"require": list(required), "verify_aud": audience is not None},
            )
        except pyjwt.ExpiredSignatureError as exc:
            raise InvalidTokenError("token has expired") from exc
        except pyjwt.PyJWTError as exc:
            raise InvalidTokenError(f"invalid token: {exc}") from exc

        if not isinstance(claims, dict):
            raise InvalidTokenError("token payload is not an object")
        return claims
