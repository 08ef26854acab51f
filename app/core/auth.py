"""Azure AD bearer tokens: JWKS lookup, signature and claim validation."""

from __future__ import annotations

import json
import logging
import time
import urllib.error
import urllib.request
from typing import Any

from fastapi import HTTPException, status
from jose import jwk, jwt
from jose.constants import Algorithms
from jose.exceptions import ExpiredSignatureError, JWSSignatureError, JWTClaimsError, JWTError

logger = logging.getLogger("azure_auth")

_JWKS_TTL_SECONDS = 24 * 60 * 60


class JwksCache:
    """Signing keys per Azure AD tenant, refreshed daily."""

    def __init__(self, ttl_seconds: int = _JWKS_TTL_SECONDS) -> None:
        self.ttl_seconds = ttl_seconds
        self._keys: dict[str, dict[str, Any]] = {}
        self._fetched_at: dict[str, float] = {}

    def get(self, tenant_id: str) -> dict[str, Any]:
        fetched_at = self._fetched_at.get(tenant_id)
        if fetched_at is not None and time.time() - fetched_at < self.ttl_seconds:
            return self._keys[tenant_id]

        jwks_uri = f"https://login.microsoftonline.com/{tenant_id}/discovery/v2.0/keys"
        logger.info("Fetching JWKS from %s", jwks_uri)
        try:
            with urllib.request.urlopen(urllib.request.Request(jwks_uri), timeout=15) as resp:  # noqa: S310
                keys = json.loads(resp.read().decode())
        except (urllib.error.URLError, urllib.error.HTTPError) as e:
            logger.error("Failed to fetch JWKS: %s", e)
            if tenant_id in self._keys:
                logger.warning("Using stale JWKS for tenant %s", tenant_id)
                return self._keys[tenant_id]
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail=f"Could not fetch JWKS: {e}",
            ) from e

        self._keys[tenant_id] = keys
        self._fetched_at[tenant_id] = time.time()
        return keys


_jwks_cache = JwksCache()


def get_jwks(tenant_id: str) -> dict[str, Any]:
    return _jwks_cache.get(tenant_id)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def get_signing_key(token: str, tenant_id: str) -> dict[str, str]:
    try:
        kid = jwt.get_unverified_header(token).get("kid")
    except JWTError as e:
        raise _unauthorized(f"Invalid token header: {e}") from e

    if not kid:
        raise _unauthorized("Token has no 'kid' in header")

    for key in get_jwks(tenant_id).get("keys", []):
        if key.get("kid") == kid:
            return key
    raise _unauthorized(f"No matching signing key for kid: {kid}")


def validate_token(token: str, tenant_id: str, client_id: str) -> dict[str, Any]:
    if not tenant_id or not client_id:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Missing Azure AD configuration",
        )

    key = get_signing_key(token, tenant_id)
    algorithm = key.get("alg", Algorithms.RS256)
    public_key = jwk.construct(key, algorithm=algorithm)

    # v1 and v2 endpoints issue different iss/aud values for the same app.
    issuers = [
        f"https://login.microsoftonline.com/{tenant_id}/v2.0",
        f"https://sts.windows.net/{tenant_id}/",
    ]
    audiences = [client_id, f"api://{client_id}"]
    options = {"require_exp": True, "require_iss": True, "require_aud": True}

    last_error: JWTError | None = None
    for issuer in issuers:
        for audience in audiences:
            try:
                return jwt.decode(
                    token,
                    public_key,
                    algorithms=[algorithm],
                    audience=audience,
                    issuer=issuer,
                    options=options,
                )
            except ExpiredSignatureError as e:
                raise _unauthorized("Token is expired") from e
            except JWSSignatureError as e:
                raise _unauthorized("Invalid token signature") from e
            except JWTError as e:
                last_error = e

    message = str(last_error).lower() if isinstance(last_error, JWTClaimsError) else ""
    if "audience" in message:
        raise _unauthorized(f"Invalid token audience. Expected one of: {audiences}")
    if "issuer" in message:
        raise _unauthorized(f"Invalid token issuer. Expected one of: {issuers}")
    raise _unauthorized("Invalid authentication credentials")


def extract_roles_from_token(payload: dict[str, Any]) -> list[str]:
    roles = payload.get("roles", [])
    if not isinstance(roles, list):
        return []
    return [str(r) for r in roles if isinstance(r, str | int)]


def extract_organization_id(payload: dict[str, Any], claim: str) -> str | None:
    value = payload.get(claim)
    return str(value) if value else None
