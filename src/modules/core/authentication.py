"""Auth0 JWT Authentication backend for Django REST Framework.

Uses PyJWT with RS256 asymmetric verification.  JWKS keys are fetched
from the Auth0 tenant and cached in-memory (default 300 s) via
``PyJWKClient`` — no network call on every request.

Orders are owned by local users, so a verified token is resolved into a
Django ``User`` whose ``username`` is the token subject (created on first
sight).  The order core trusts this identity completely.

Security decisions
------------------
* **Fail Closed** — any decode / validation error returns 401.
* ``algorithms`` is hard-coded to the configured value (default RS256),
  never derived from the incoming token.
* Audience **and** issuer are always validated.
"""

import jwt as pyjwt
import structlog
from decouple import config
from django.contrib.auth import get_user_model
from jwt import PyJWKClient
from jwt.exceptions import PyJWTError
from rest_framework.authentication import BaseAuthentication
from rest_framework.exceptions import AuthenticationFailed

logger = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# Auth0 settings (read once at module level)
# ---------------------------------------------------------------------------
AUTH0_DOMAIN = config("AUTH0_DOMAIN", default="")
AUTH0_AUDIENCE = config("AUTH0_AUDIENCE", default="")
AUTH0_ALGORITHM = config("AUTH0_ALGORITHM", default="RS256")

_ISSUER = f"https://{AUTH0_DOMAIN}/" if AUTH0_DOMAIN else ""
_JWKS_URL = f"https://{AUTH0_DOMAIN}/.well-known/jwks.json" if AUTH0_DOMAIN else ""

_jwks_client: PyJWKClient | None = None

if _JWKS_URL:
    _jwks_client = PyJWKClient(
        _JWKS_URL,
        cache_jwk_set=True,
        lifespan=300,
    )

_AUTH0_ENABLED = bool(_jwks_client and AUTH0_AUDIENCE and _ISSUER)


def resolve_local_user(payload: dict):
    """Map a verified token payload onto a local Django user."""
    subject = payload.get("sub", "")
    if not subject:
        raise AuthenticationFailed("Token has no subject.")

    User = get_user_model()
    user, created = User.objects.get_or_create(
        username=subject[:150],
        defaults={"first_name": payload.get("name", "")[:150]},
    )
    if not user.is_active:
        raise AuthenticationFailed("User is inactive.")
    if created:
        logger.info("auth.user_provisioned", user_id=user.pk)
    return user


class Auth0JSONWebTokenAuthentication(BaseAuthentication):
    """DRF authentication class that validates Auth0 JWT Bearer tokens."""

    keyword = "Bearer"

    def authenticate(self, request):
        """Return ``(User, token)`` or ``None`` (no credentials)."""
        header = request.META.get("HTTP_AUTHORIZATION", "")
        if not header:
            return None

        token = self._extract_token(header)

        # Let SimpleJWT handle the token when Auth0 is not configured or the
        # issuer is not the Auth0 tenant.
        if not _AUTH0_ENABLED:
            return None
        if not self._token_has_auth0_issuer(token):
            return None

        payload = self._decode_token(token)
        user = resolve_local_user(payload)
        logger.info("jwt_authenticated", user_id=user.pk)
        return (user, token)

    def authenticate_header(self, request):
        """Value for the ``WWW-Authenticate`` response header on 401."""
        return f'{self.keyword} realm="api"'

    @staticmethod
    def _extract_token(header: str) -> str:
        parts = header.split()
        if len(parts) != 2 or parts[0].lower() != "bearer":
            raise AuthenticationFailed("Invalid Authorization header format.")
        return parts[1]

    @staticmethod
    def _token_has_auth0_issuer(token: str) -> bool:
        try:
            payload = pyjwt.decode(
                token,
                options={
                    "verify_signature": False,
                    "verify_aud": False,
                    "verify_iss": False,
                },
            )
        except PyJWTError:
            return False
        return payload.get("iss") == _ISSUER

    @staticmethod
    def _decode_token(token: str) -> dict:
        if not _jwks_client:
            raise AuthenticationFailed(
                "Auth0 is not configured (AUTH0_DOMAIN missing)."
            )
        try:
            signing_key = _jwks_client.get_signing_key_from_jwt(token)
            payload = pyjwt.decode(
                token,
                signing_key.key,
                algorithms=[AUTH0_ALGORITHM],
                audience=AUTH0_AUDIENCE,
                issuer=_ISSUER,
            )
        except PyJWTError as exc:
            logger.warning("jwt_validation_failed", error=str(exc))
            raise AuthenticationFailed(f"Token validation failed: {exc}") from exc
        return payload
