"""Tests for the identity data seeders and configuration loading."""
import json

import pytest

from services.identity_service.permissions import (
    ApplicationDescriptor,
    ClientTypes,
    ConsentTypes,
    GrantTypes,
)
from services.identity_service.repository import (
    ApplicationRepository,
    PermissionGrantRepository,
    ScopeRepository,
    UserRepository,
)
from services.identity_service.schemas import UserCreate
from services.identity_service.seed import (
    CLIENT_PERMISSION_PROVIDER,
    IdentityDataSeedContributor,
    OpenIddictDataSeedContributor,
    run_data_seeders,
)
from shared.config.settings import load_section
from shared.exceptions import BusinessException
from shared.security.passwords import verify_secret


def make_configuration(**overrides):
    configuration = {
        "TeduEcommerce_Web": {
            "ClientId": "Eshop_Web",
            "ClientSecret": "web-secret",
            "RootUrl": "https://localhost:44368",
        },
        "Eshop_Admin": {
            "ClientId": "Eshop_Admin",
            "ClientSecret": "admin-secret",
            "RootUrl": "http://localhost:4200/",
        },
        "Eshop_App": {
            "ClientId": "Eshop_App",
            "RootUrl": "http://localhost:4200",
        },
    }
    for name, values in overrides.items():
        if values is None:
            configuration.pop(name, None)
        else:
            configuration[name] = {**configuration.get(name, {}), **values}
    return configuration


def descriptor(**overrides):
    values = dict(
        client_id="Reporting",
        client_type=ClientTypes.CONFIDENTIAL,
        consent_type=ConsentTypes.IMPLICIT,
        display_name="Reporting",
        client_secret="reporting-secret",
        grant_types=[GrantTypes.CLIENT_CREDENTIALS],
        scopes=["Eshop"],
    )
    values.update(overrides)
    return ApplicationDescriptor(**values)


class TestScopeSeeding:

    async def test_creates_api_scopes(self, db):
        results = await OpenIddictDataSeedContributor(db, {}).create_scopes()

        assert [(r.name, r.action) for r in results] == [
            ("Eshop", "created"),
            ("Eshop.Admin", "created"),
        ]
        scope = await ScopeRepository.find_by_name(db, "Eshop")
        assert scope.display_name == "Eshop API"
        assert scope.resource_list == ["Eshop"]

    async def test_existing_scopes_are_left_alone(self, db):
        await OpenIddictDataSeedContributor(db, {}).create_scopes()
        results = await OpenIddictDataSeedContributor(db, {}).create_scopes()

        assert all(r.action == "unchanged" for r in results)
        assert len(await ScopeRepository.list_all(db)) == 2


class TestApplicationSeeding:

    async def test_creates_configured_clients(self, db):
        results = await OpenIddictDataSeedContributor(db, make_configuration()).seed()

        created = {r.name for r in results if r.kind == "application" and r.action == "created"}
        assert created == {"Eshop_Web", "Eshop_Admin", "Eshop_App"}

    async def test_web_client(self, db):
        await OpenIddictDataSeedContributor(db, make_configuration()).seed()
        web = await ApplicationRepository.find_by_client_id(db, "Eshop_Web")

        assert web.client_type == ClientTypes.CONFIDENTIAL
        assert web.consent_type == ConsentTypes.IMPLICIT
        assert web.client_uri == "https://localhost:44368/"
        assert web.redirect_uri_list == ["https://localhost:44368/signin-oidc"]
        assert web.post_logout_redirect_uri_list == ["https://localhost:44368/signout-callback-oidc"]
        assert "rst:code id_token" in web.permission_list
        assert "gt:implicit" in web.permission_list
        assert "scp:Eshop" in web.permission_list

    async def test_secret_is_stored_hashed(self, db):
        await OpenIddictDataSeedContributor(db, make_configuration()).seed()
        admin = await ApplicationRepository.find_by_client_id(db, "Eshop_Admin")

        assert admin.client_secret != "admin-secret"
        assert verify_secret("admin-secret", admin.client_secret)

    async def test_admin_client(self, db):
        await OpenIddictDataSeedContributor(db, make_configuration()).seed()
        admin = await ApplicationRepository.find_by_client_id(db, "Eshop_Admin")

        assert admin.client_uri == "http://localhost:4200"
        assert admin.redirect_uri_list == ["http://localhost:4200/signin-oidc"]
        for permission in ("ept:token", "gt:password", "gt:refresh_token", "gt:implicit", "scp:roles"):
            assert permission in admin.permission_list

    async def test_spa_client_is_public(self, db):
        await OpenIddictDataSeedContributor(db, make_configuration()).seed()
        spa = await ApplicationRepository.find_by_client_id(db, "Eshop_App")

        assert spa.client_type == ClientTypes.PUBLIC
        assert spa.client_secret is None
        assert spa.redirect_uri_list == ["http://localhost:4200"]
        assert "gt:authorization_code" in spa.permission_list
        assert "ept:end_session" in spa.permission_list
        assert "scp:offline_access" in spa.permission_list

    async def test_web_client_falls_back_to_default_secret(self, db):
        configuration = make_configuration(TeduEcommerce_Web={"ClientSecret": ""})
        await OpenIddictDataSeedContributor(db, configuration).seed()
        web = await ApplicationRepository.find_by_client_id(db, "Eshop_Web")

        assert verify_secret("1q2w3e*", web.client_secret)

    async def test_blank_client_id_is_skipped(self, db):
        configuration = make_configuration(Eshop_App={"ClientId": "  "}, TeduEcommerce_Web=None)
        results = await OpenIddictDataSeedContributor(db, configuration).create_applications()

        assert [r.name for r in results] == ["Eshop_Admin"]
        assert await ApplicationRepository.find_by_client_id(db, "Eshop_App") is None

    async def test_admin_without_secret_fails(self, db):
        configuration = make_configuration(Eshop_Admin={"ClientSecret": " "})

        with pytest.raises(BusinessException) as exc_info:
            await OpenIddictDataSeedContributor(db, configuration).create_applications()
        assert exc_info.value.code == "MissingClientSecret"


class TestReconciliation:

    async def test_second_run_changes_nothing(self, db):
        configuration = make_configuration()
        await OpenIddictDataSeedContributor(db, configuration).seed()
        before = {a.client_id: a.permissions for a in await ApplicationRepository.list_all(db)}

        results = await OpenIddictDataSeedContributor(db, configuration).seed()

        assert all(r.action == "unchanged" for r in results)
        after = {a.client_id: a.permissions for a in await ApplicationRepository.list_all(db)}
        assert before == after

    async def test_changed_root_url_updates_redirects(self, db):
        await OpenIddictDataSeedContributor(db, make_configuration()).seed()
        configuration = make_configuration(Eshop_App={"RootUrl": "https://admin.eshop.example"})

        results = await OpenIddictDataSeedContributor(db, configuration).create_applications()

        actions = {r.name: r.action for r in results}
        assert actions == {"Eshop_Web": "unchanged", "Eshop_Admin": "unchanged", "Eshop_App": "updated"}
        spa = await ApplicationRepository.find_by_client_id(db, "Eshop_App")
        assert spa.redirect_uri_list == ["https://admin.eshop.example"]
        assert spa.post_logout_redirect_uri_list == ["https://admin.eshop.example"]

    async def test_changed_grant_types_update_permissions(self, db):
        seeder = OpenIddictDataSeedContributor(db, {})
        await seeder.create_application(descriptor())

        result = await seeder.create_application(
            descriptor(grant_types=[GrantTypes.CLIENT_CREDENTIALS, GrantTypes.REFRESH_TOKEN])
        )

        assert result.action == "updated"
        client = await ApplicationRepository.find_by_client_id(db, "Reporting")
        assert "gt:refresh_token" in client.permission_list

    async def test_secret_is_not_rotated_on_update(self, db):
        seeder = OpenIddictDataSeedContributor(db, {})
        await seeder.create_application(descriptor())
        await seeder.create_application(descriptor(client_secret="new-secret", scopes=["Eshop", "Eshop.Admin"]))

        client = await ApplicationRepository.find_by_client_id(db, "Reporting")
        assert verify_secret("reporting-secret", client.client_secret)
        assert "scp:Eshop.Admin" in client.permission_list

    async def test_stored_json_is_stable(self, db):
        seeder = OpenIddictDataSeedContributor(db, {})
        await seeder.create_application(descriptor())
        client = await ApplicationRepository.find_by_client_id(db, "Reporting")

        assert json.loads(client.permissions) == client.permission_list
        assert client.redirect_uris == "[]"


class TestDescriptorValidation:

    async def test_public_client_with_secret(self, db):
        with pytest.raises(BusinessException) as exc_info:
            await OpenIddictDataSeedContributor(db, {}).create_application(
                descriptor(client_type=ClientTypes.PUBLIC, grant_types=[GrantTypes.AUTHORIZATION_CODE])
            )
        assert exc_info.value.code == "NoClientSecretCanBeSetForPublicApplications"

    async def test_confidential_client_without_secret(self, db):
        with pytest.raises(BusinessException) as exc_info:
            await OpenIddictDataSeedContributor(db, {}).create_application(descriptor(client_secret=None))
        assert exc_info.value.code == "TheClientSecretIsRequiredForConfidentialApplications"

    async def test_grant_types_required(self, db):
        with pytest.raises(BusinessException) as exc_info:
            await OpenIddictDataSeedContributor(db, {}).create_application(descriptor(grant_types=[]))
        assert exc_info.value.code == "GrantTypesRequired"

    async def test_scopes_required(self, db):
        with pytest.raises(BusinessException) as exc_info:
            await OpenIddictDataSeedContributor(db, {}).create_application(descriptor(scopes=[]))
        assert exc_info.value.code == "ScopesRequired"

    async def test_invalid_descriptor_writes_nothing(self, db):
        with pytest.raises(BusinessException):
            await OpenIddictDataSeedContributor(db, {}).create_application(descriptor(client_secret=""))
        assert await ApplicationRepository.find_by_client_id(db, "Reporting") is None


class TestClientPermissionGrants:

    async def test_grants_are_added_once(self, db):
        configuration = make_configuration(Eshop_Admin={"Permissions": ["Eshop.Orders", "Eshop.Products"]})
        await OpenIddictDataSeedContributor(db, configuration).seed()
        await OpenIddictDataSeedContributor(db, configuration).seed()

        grants = await PermissionGrantRepository.list_for_provider(db, CLIENT_PERMISSION_PROVIDER, "Eshop_Admin")
        assert sorted(g.name for g in grants) == ["Eshop.Orders", "Eshop.Products"]

    async def test_comma_separated_permissions(self, db):
        configuration = make_configuration(Eshop_Admin={"Permissions": "Eshop.Orders, Eshop.Orders,Eshop.Reports"})
        await OpenIddictDataSeedContributor(db, configuration).seed()

        grants = await PermissionGrantRepository.list_for_provider(db, CLIENT_PERMISSION_PROVIDER, "Eshop_Admin")
        assert sorted(g.name for g in grants) == ["Eshop.Orders", "Eshop.Reports"]


class TestIdentitySeeding:

    async def test_creates_admin_once(self, db):
        first = await IdentityDataSeedContributor(db, "Owner@Eshop.com", "s3cret!").seed()
        second = await IdentityDataSeedContributor(db, "owner@eshop.com", "s3cret!").seed()

        assert first[0].action == "created"
        assert second[0].action == "unchanged"
        user = await UserRepository.get_by_email(db, "owner@eshop.com")
        assert verify_secret("s3cret!", user.hashed_password)

    async def test_default_admin_email_is_accepted_by_registration(self, db):
        contributor = IdentityDataSeedContributor(db)

        payload = UserCreate(email=contributor.email, password=contributor.password, name="admin")

        assert payload.email == contributor.email

    async def test_run_data_seeders(self, db):
        results = await run_data_seeders(db, make_configuration())

        assert results[0].kind == "user"
        assert {r.kind for r in results} == {"user", "scope", "application"}


class TestLoadSection:

    def test_reads_nested_section(self, tmp_path, monkeypatch):
        settings = tmp_path / "appsettings.json"
        settings.write_text(json.dumps({"OpenIddict": {"Applications": {"Eshop_App": {"ClientId": "Eshop_App"}}}}))
        monkeypatch.delenv("OpenIddict__Applications__Eshop_App__ClientId", raising=False)

        section = load_section("OpenIddict:Applications", str(settings))

        assert section == {"Eshop_App": {"ClientId": "Eshop_App"}}

    def test_environment_overrides_file(self, tmp_path, monkeypatch):
        settings = tmp_path / "appsettings.json"
        settings.write_text(json.dumps({"OpenIddict": {"Applications": {"Eshop_Admin": {"ClientSecret": "file"}}}}))
        monkeypatch.setenv("OpenIddict__Applications__Eshop_Admin__ClientSecret", "from-env")
        monkeypatch.setenv("OpenIddict__Applications__Eshop_Web__RootUrl", "https://web.example")

        section = load_section("OpenIddict:Applications", str(settings))

        assert section["Eshop_Admin"]["ClientSecret"] == "from-env"
        assert section["Eshop_Web"] == {"RootUrl": "https://web.example"}

    def test_missing_file_yields_empty_section(self, tmp_path):
        assert load_section("OpenIddict:Applications", str(tmp_path / "missing.json")) == {}
