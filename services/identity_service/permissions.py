"""
OAuth2 / OpenID Connect constants and client permission derivation.

Permission strings follow the OpenIddict conventions: `gt:` grant types,
`ept:` endpoints, `rst:` response types and `scp:` scopes.
"""
from dataclasses import dataclass
from typing import Iterable, Optional
from urllib.parse import urlparse


class ClientTypes:
    CONFIDENTIAL = "confidential"
    PUBLIC = "public"


class ConsentTypes:
    EXPLICIT = "explicit"
    EXTERNAL = "external"
    IMPLICIT = "implicit"
    SYSTEMATIC = "systematic"


class GrantTypes:
    AUTHORIZATION_CODE = "authorization_code"
    CLIENT_CREDENTIALS = "client_credentials"
    DEVICE_CODE = "urn:ietf:params:oauth:grant-type:device_code"
    IMPLICIT = "implicit"
    PASSWORD = "password"
    REFRESH_TOKEN = "refresh_token"


class Scopes:
    OPENID = "openid"
    OFFLINE_ACCESS = "offline_access"


class Prefixes:
    ENDPOINT = "ept:"
    GRANT_TYPE = "gt:"
    RESPONSE_TYPE = "rst:"
    SCOPE = "scp:"


class Permissions:
    class Endpoints:
        AUTHORIZATION = "ept:authorization"
        DEVICE_AUTHORIZATION = "ept:device_authorization"
        END_SESSION = "ept:end_session"
        INTROSPECTION = "ept:introspection"
        REVOCATION = "ept:revocation"
        TOKEN = "ept:token"

    class GrantTypes:
        AUTHORIZATION_CODE = "gt:authorization_code"
        CLIENT_CREDENTIALS = "gt:client_credentials"
        DEVICE_CODE = "gt:urn:ietf:params:oauth:grant-type:device_code"
        IMPLICIT = "gt:implicit"
        PASSWORD = "gt:password"
        REFRESH_TOKEN = "gt:refresh_token"

    class ResponseTypes:
        CODE = "rst:code"
        CODE_ID_TOKEN = "rst:code id_token"
        CODE_ID_TOKEN_TOKEN = "rst:code id_token token"
        CODE_TOKEN = "rst:code token"
        ID_TOKEN = "rst:id_token"
        ID_TOKEN_TOKEN = "rst:id_token token"
        TOKEN = "rst:token"

    class Scopes:
        ADDRESS = "scp:address"
        EMAIL = "scp:email"
        PHONE = "scp:phone"
        PROFILE = "scp:profile"
        ROLES = "scp:roles"


BUILT_IN_GRANT_TYPES = frozenset({
    GrantTypes.IMPLICIT,
    GrantTypes.PASSWORD,
    GrantTypes.AUTHORIZATION_CODE,
    GrantTypes.CLIENT_CREDENTIALS,
    GrantTypes.DEVICE_CODE,
    GrantTypes.REFRESH_TOKEN,
})

BUILT_IN_SCOPES = frozenset({
    Permissions.Scopes.ADDRESS,
    Permissions.Scopes.EMAIL,
    Permissions.Scopes.PHONE,
    Permissions.Scopes.PROFILE,
    Permissions.Scopes.ROLES,
})

TOKEN_ENDPOINT_GRANT_TYPES = frozenset({
    GrantTypes.AUTHORIZATION_CODE,
    GrantTypes.CLIENT_CREDENTIALS,
    GrantTypes.PASSWORD,
    GrantTypes.REFRESH_TOKEN,
    GrantTypes.DEVICE_CODE,
})


def is_public(client_type: str) -> bool:
    return client_type.lower() == ClientTypes.PUBLIC


def is_confidential(client_type: str) -> bool:
    return client_type.lower() == ClientTypes.CONFIDENTIAL


def derive_permissions(
    client_type: str,
    grant_types: Iterable[str],
    scopes: Iterable[str],
    redirect_uri: Optional[str] = None,
    post_logout_redirect_uri: Optional[str] = None,
) -> list[str]:
    """
    Maps a client's grant types and scopes onto the permissions it needs.

    The result is ordered and free of duplicates, so two runs over the same
    configuration serialize to the same JSON.
    """
    grant_types = list(grant_types)
    public = is_public(client_type)
    permissions: list[str] = []

    # Hybrid flow
    if GrantTypes.AUTHORIZATION_CODE in grant_types and GrantTypes.IMPLICIT in grant_types:
        permissions.append(Permissions.ResponseTypes.CODE_ID_TOKEN)
        if public:
            permissions.append(Permissions.ResponseTypes.CODE_ID_TOKEN_TOKEN)
            permissions.append(Permissions.ResponseTypes.CODE_TOKEN)

    if (redirect_uri and redirect_uri.strip()) or (post_logout_redirect_uri and post_logout_redirect_uri.strip()):
        permissions.append(Permissions.Endpoints.END_SESSION)

    for grant_type in grant_types:
        if grant_type == GrantTypes.AUTHORIZATION_CODE:
            permissions.append(Permissions.GrantTypes.AUTHORIZATION_CODE)
            permissions.append(Permissions.ResponseTypes.CODE)

        if grant_type in (GrantTypes.AUTHORIZATION_CODE, GrantTypes.IMPLICIT):
            permissions.append(Permissions.Endpoints.AUTHORIZATION)

        if grant_type in TOKEN_ENDPOINT_GRANT_TYPES:
            permissions.append(Permissions.Endpoints.TOKEN)
            permissions.append(Permissions.Endpoints.REVOCATION)
            permissions.append(Permissions.Endpoints.INTROSPECTION)

        if grant_type == GrantTypes.CLIENT_CREDENTIALS:
            permissions.append(Permissions.GrantTypes.CLIENT_CREDENTIALS)

        if grant_type == GrantTypes.IMPLICIT:
            permissions.append(Permissions.GrantTypes.IMPLICIT)
            permissions.append(Permissions.ResponseTypes.ID_TOKEN)
            if public:
                permissions.append(Permissions.ResponseTypes.ID_TOKEN_TOKEN)
                permissions.append(Permissions.ResponseTypes.TOKEN)

        if grant_type == GrantTypes.PASSWORD:
            permissions.append(Permissions.GrantTypes.PASSWORD)

        if grant_type == GrantTypes.REFRESH_TOKEN:
            permissions.append(Permissions.GrantTypes.REFRESH_TOKEN)

        if grant_type == GrantTypes.DEVICE_CODE:
            permissions.append(Permissions.GrantTypes.DEVICE_CODE)
            permissions.append(Permissions.Endpoints.DEVICE_AUTHORIZATION)

        if grant_type not in BUILT_IN_GRANT_TYPES:
            permissions.append(Prefixes.GRANT_TYPE + grant_type)

    for scope in scopes:
        if scope in BUILT_IN_SCOPES:
            permissions.append(scope)
        else:
            permissions.append(Prefixes.SCOPE + scope)

    # First occurrence wins, so the order is stable across runs
    return list(dict.fromkeys(permissions))


def normalize_redirect_uri(uri: Optional[str]) -> Optional[str]:
    """Absolute URIs only, stored without a trailing slash; anything else is dropped."""
    if not uri:
        return None
    parsed = urlparse(uri.strip())
    if not parsed.scheme or not parsed.netloc:
        return None
    return uri.strip().rstrip("/")


def scope_permission(scope: str) -> str:
    return Prefixes.SCOPE + scope


@dataclass
class ApplicationDescriptor:
    """Desired state of one OAuth client, as produced from configuration."""

    client_id: str
    client_type: str
    consent_type: str
    display_name: str
    client_secret: Optional[str]
    grant_types: list[str]
    scopes: list[str]
    client_uri: Optional[str] = None
    redirect_uri: Optional[str] = None
    post_logout_redirect_uri: Optional[str] = None
    permissions: Optional[list[str]] = None
