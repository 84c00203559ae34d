"""
Bearer authentication for the JobFlow API.

Tokens are issued by an external identity provider. Verification supports a
shared secret (HS256), a PEM public key, or a JWKS endpoint. The user id is
taken from the ``sub`` claim (``userId``/``userid`` are accepted as well).
"""

import functools
import logging
from typing import Any, Dict, List, Optional

import jwt
from flask import current_app, g, jsonify, request
from jwt import PyJWKClient

logger = logging.getLogger(__name__)

USER_ID_CLAIMS = ("sub", "userId", "userid")


class AuthError(Exception):
    """Missing or invalid bearer credential."""


class TokenVerifier:
    """Verifies identity-provider JWTs and resolves the caller's user id."""

    def __init__(
        self,
        jwt_secret: Optional[str] = None,
        jwt_key: Optional[str] = None,
        jwks_url: Optional[str] = None,
        algorithms: Optional[List[str]] = None,
        audience: Optional[str] = None,
        issuer: Optional[str] = None,
    ):
        self.jwt_secret = jwt_secret
        self.jwt_key = jwt_key
        self.algorithms = list(algorithms or ["RS256"])
        self.audience = audience
        self.issuer = issuer
        self._jwk_client = PyJWKClient(jwks_url) if jwks_url else None

    @classmethod
    def from_config(cls, config) -> "TokenVerifier":
        auth = config.auth
        return cls(
            jwt_secret=auth.get("jwt_secret"),
            jwt_key=auth.get("jwt_key"),
            jwks_url=auth.get("jwks_url"),
            algorithms=config.auth_algorithms,
            audience=auth.get("audience"),
            issuer=auth.get("issuer"),
        )

    @property
    def configured(self) -> bool:
        return bool(self.jwt_secret or self.jwt_key or self._jwk_client)

    def _signing_key(self, token: str):
        if self.jwt_secret:
            return self.jwt_secret, ["HS256"]
        if self.jwt_key:
            return self.jwt_key, self.algorithms
        if self._jwk_client is not None:
            return self._jwk_client.get_signing_key_from_jwt(token).key, self.algorithms
        raise AuthError("No token verification key configured")

    def verify(self, token: str) -> Dict[str, Any]:
        """
        Verify signature, expiry and (when configured) audience/issuer.

        Raises:
            AuthError: On any verification failure
        """
        if not token:
            raise AuthError("Missing bearer token")

        try:
            key, algorithms = self._signing_key(token)
            options = {"verify_exp": True, "verify_aud": bool(self.audience)}
            return jwt.decode(
                token,
                key,
                algorithms=algorithms,
                audience=self.audience,
                issuer=self.issuer,
                options=options,
            )
        except jwt.PyJWTError as e:
            raise AuthError(f"Invalid authentication token: {e}") from e

    def user_id(self, token: str) -> str:
        claims = self.verify(token)
        for claim in USER_ID_CLAIMS:
            value = claims.get(claim)
            if value:
                return str(value)
        raise AuthError("No user id in verified token payload")


def bearer_token(header: Optional[str]) -> Optional[str]:
    """Extract the token from an ``Authorization: Bearer <token>`` header."""
    if not header or not header.startswith("Bearer "):
        return None
    token = header[7:].strip()
    return token or None


def require_auth(view):
    """
    Reject the request with a bare 401 unless it carries a valid bearer token.

    On success the caller's id is available as ``g.user_id``.
    """

    @functools.wraps(view)
    def wrapper(*args, **kwargs):
        verifier: TokenVerifier = current_app.extensions["jobflow"]["verifier"]
        token = bearer_token(request.headers.get("Authorization"))
        try:
            if token is None:
                raise AuthError("Missing or invalid Authorization header")
            g.user_id = verifier.user_id(token)
        except AuthError as e:
            logger.warning(f"Rejected request to {request.path}: {e}")
            return jsonify({"error": "Unauthorized"}), 401
        return view(*args, **kwargs)

    return wrapper
