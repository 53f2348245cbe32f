"""
Data seeding for the identity server.

`OpenIddictDataSeedContributor` reconciles the OAuth scopes and client
applications described in configuration against the stored records. Running
it repeatedly converges on the same state and writes nothing once the store
matches the configuration.
"""
import json
import os
from dataclasses import dataclass
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.settings import load_section
from shared.exceptions import BusinessException
from shared.observability import eshop_seed_actions_total
from shared.security.passwords import hash_secret

from .models import ClientPermissionGrant, OpenIddictApplication, OpenIddictScope, User
from .permissions import (
    ApplicationDescriptor,
    ClientTypes,
    ConsentTypes,
    GrantTypes,
    Permissions,
    Scopes,
    derive_permissions,
    is_confidential,
    is_public,
    normalize_redirect_uri,
)
from .repository import ApplicationRepository, PermissionGrantRepository, ScopeRepository, UserRepository

logger = structlog.get_logger(__name__)

CLIENT_PERMISSION_PROVIDER = "C"
DEFAULT_WEB_CLIENT_SECRET = "1q2w3e*"

API_SCOPES = [
    # name, display name, resources
    ("Eshop", "Eshop API", ["Eshop"]),
    ("Eshop.Admin", "Eshop Admin API", ["Eshop.Admin"]),
]


@dataclass
class SeedResult:
    kind: str
    name: str
    action: str  # created | updated | unchanged


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


def _dump(values: list[str]) -> str:
    return json.dumps(values)


class OpenIddictDataSeedContributor:

    def __init__(self, db: AsyncSession, configuration: dict | None = None):
        self.db = db
        self.configuration = (
            configuration if configuration is not None else load_section("OpenIddict:Applications")
        )

    async def seed(self) -> list[SeedResult]:
        results = await self.create_scopes()
        results.extend(await self.create_applications())
        return results

    async def create_scopes(self) -> list[SeedResult]:
        results = []
        for name, display_name, resources in API_SCOPES:
            if await ScopeRepository.find_by_name(self.db, name) is None:
                await ScopeRepository.create(
                    self.db,
                    OpenIddictScope(name=name, display_name=display_name, resources=_dump(resources)),
                )
                results.append(self._record("scope", name, "created"))
            else:
                results.append(self._record("scope", name, "unchanged"))
        return results

    async def create_applications(self) -> list[SeedResult]:
        common_scopes = [
            Permissions.Scopes.ADDRESS,
            Permissions.Scopes.EMAIL,
            Permissions.Scopes.PHONE,
            Permissions.Scopes.PROFILE,
            Permissions.Scopes.ROLES,
            "Eshop",
        ]
        results = []

        # Server-rendered web client (hybrid flow)
        web = self.configuration.get("TeduEcommerce_Web", {})
        web_client_id = web.get("ClientId")
        if not _is_blank(web_client_id):
            root_url = web.get("RootUrl") or ""
            if not root_url.endswith("/"):
                root_url += "/"
            results.append(
                await self.create_application(
                    ApplicationDescriptor(
                        client_id=web_client_id,
                        client_type=ClientTypes.CONFIDENTIAL,
                        consent_type=ConsentTypes.IMPLICIT,
                        display_name="Web Application",
                        client_secret=web.get("ClientSecret") or DEFAULT_WEB_CLIENT_SECRET,
                        grant_types=[GrantTypes.AUTHORIZATION_CODE, GrantTypes.IMPLICIT],
                        scopes=common_scopes,
                        client_uri=root_url,
                        redirect_uri=f"{root_url}signin-oidc",
                        post_logout_redirect_uri=f"{root_url}signout-callback-oidc",
                        permissions=web.get("Permissions"),
                    )
                )
            )

        # Admin back office
        admin = self.configuration.get("Eshop_Admin", {})
        admin_client_id = admin.get("ClientId")
        if not _is_blank(admin_client_id):
            root_url = (admin.get("RootUrl") or "").rstrip("/")
            secret = admin.get("ClientSecret")
            if _is_blank(secret):
                raise BusinessException(
                    "MissingClientSecret", f"Missing client secret for {admin_client_id}"
                )
            results.append(
                await self.create_application(
                    ApplicationDescriptor(
                        client_id=admin_client_id,
                        client_type=ClientTypes.CONFIDENTIAL,
                        consent_type=ConsentTypes.IMPLICIT,
                        display_name="Admin Application",
                        client_secret=secret,
                        grant_types=[GrantTypes.PASSWORD, GrantTypes.REFRESH_TOKEN, GrantTypes.IMPLICIT],
                        scopes=common_scopes,
                        client_uri=root_url,
                        redirect_uri=f"{root_url}/signin-oidc",
                        post_logout_redirect_uri=f"{root_url}/signout-callback-oidc",
                        permissions=admin.get("Permissions"),
                    )
                )
            )

        # Admin single page app (code flow + PKCE, no secret)
        spa = self.configuration.get("Eshop_App", {})
        spa_client_id = spa.get("ClientId")
        if not _is_blank(spa_client_id):
            root_url = (spa.get("RootUrl") or "").rstrip("/")
            results.append(
                await self.create_application(
                    ApplicationDescriptor(
                        client_id=spa_client_id,
                        client_type=ClientTypes.PUBLIC,
                        consent_type=ConsentTypes.IMPLICIT,
                        display_name="Admin Single Page Application",
                        client_secret=None,
                        grant_types=[GrantTypes.AUTHORIZATION_CODE, GrantTypes.REFRESH_TOKEN],
                        scopes=[*common_scopes, Scopes.OFFLINE_ACCESS],
                        client_uri=root_url,
                        redirect_uri=root_url,
                        post_logout_redirect_uri=root_url,
                        permissions=spa.get("Permissions"),
                    )
                )
            )

        return results

    async def create_application(self, descriptor: ApplicationDescriptor) -> SeedResult:
        client_type = descriptor.client_type
        if descriptor.client_secret and is_public(client_type):
            raise BusinessException(
                "NoClientSecretCanBeSetForPublicApplications",
                "No client secret can be set for public applications.",
            )
        if not descriptor.client_secret and is_confidential(client_type):
            raise BusinessException(
                "TheClientSecretIsRequiredForConfidentialApplications",
                "The client secret is required for confidential applications.",
            )
        if not descriptor.grant_types:
            raise BusinessException("GrantTypesRequired", f"{descriptor.client_id}: grant types must not be empty")
        if not descriptor.scopes:
            raise BusinessException("ScopesRequired", f"{descriptor.client_id}: scopes must not be empty")

        permissions = derive_permissions(
            client_type,
            descriptor.grant_types,
            descriptor.scopes,
            descriptor.redirect_uri,
            descriptor.post_logout_redirect_uri,
        )
        redirect_uris = [uri for uri in [normalize_redirect_uri(descriptor.redirect_uri)] if uri]
        post_logout_uris = [uri for uri in [normalize_redirect_uri(descriptor.post_logout_redirect_uri)] if uri]

        if descriptor.permissions:
            await self._seed_client_permissions(descriptor.client_id, descriptor.permissions)

        client = await ApplicationRepository.find_by_client_id(self.db, descriptor.client_id)
        if client is None:
            await ApplicationRepository.create(
                self.db,
                OpenIddictApplication(
                    client_id=descriptor.client_id,
                    client_type=client_type,
                    consent_type=descriptor.consent_type,
                    display_name=descriptor.display_name,
                    client_secret=hash_secret(descriptor.client_secret) if descriptor.client_secret else None,
                    client_uri=descriptor.client_uri,
                    redirect_uris=_dump(redirect_uris),
                    post_logout_redirect_uris=_dump(post_logout_uris),
                    permissions=_dump(permissions),
                ),
            )
            return self._record("application", descriptor.client_id, "created")

        changed = False
        if client.redirect_uris != _dump(redirect_uris) or client.post_logout_redirect_uris != _dump(post_logout_uris):
            client.redirect_uris = _dump(redirect_uris)
            client.post_logout_redirect_uris = _dump(post_logout_uris)
            changed = True
        if client.permissions != _dump(permissions):
            client.permissions = _dump(permissions)
            changed = True

        if not changed:
            return self._record("application", descriptor.client_id, "unchanged")

        await ApplicationRepository.update(self.db, client)
        return self._record("application", descriptor.client_id, "updated")

    async def _seed_client_permissions(self, client_id: str, permission_names: list[str]) -> None:
        if isinstance(permission_names, str):
            # Environment overrides arrive as a comma separated string
            permission_names = [name.strip() for name in permission_names.split(",") if name.strip()]
        existing = {
            grant.name
            for grant in await PermissionGrantRepository.list_for_provider(
                self.db, CLIENT_PERMISSION_PROVIDER, client_id
            )
        }
        missing = [name for name in dict.fromkeys(permission_names) if name not in existing]
        if missing:
            await PermissionGrantRepository.add_many(
                self.db,
                [
                    ClientPermissionGrant(
                        name=name, provider_name=CLIENT_PERMISSION_PROVIDER, provider_key=client_id
                    )
                    for name in missing
                ],
            )

    @staticmethod
    def _record(kind: str, name: str, action: str) -> SeedResult:
        eshop_seed_actions_total.labels(kind=kind, action=action).inc()
        logger.info("seed_action", kind=kind, name=name, action=action)
        return SeedResult(kind=kind, name=name, action=action)


class IdentityDataSeedContributor:
    """Creates the initial administrator account when it does not exist."""

    def __init__(self, db: AsyncSession, email: str | None = None, password: str | None = None):
        self.db = db
        self.email = (email or os.getenv("ADMIN_EMAIL", "admin@eshop.com")).lower()
        self.password = password or os.getenv("ADMIN_PASSWORD", "1q2w3E*")

    async def seed(self) -> list[SeedResult]:
        if await UserRepository.get_by_email(self.db, self.email):
            return [SeedResult(kind="user", name=self.email, action="unchanged")]

        await UserRepository.create(
            self.db,
            User(email=self.email, name="admin", hashed_password=hash_secret(self.password)),
        )
        logger.info("seed_action", kind="user", name=self.email, action="created")
        return [SeedResult(kind="user", name=self.email, action="created")]


async def run_data_seeders(db: AsyncSession, configuration: dict | None = None) -> list[SeedResult]:
    results = await IdentityDataSeedContributor(db).seed()
    results.extend(await OpenIddictDataSeedContributor(db, configuration).seed())
    return results
