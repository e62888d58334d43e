import pytest

from worker.app.errors import InvalidStorageTier, InvalidTenantIdentifier
from worker.app.identifiers import (
    STORAGE_CLASSES,
    normalize_storage_tier,
    quote_identifier,
    validate_tenant_id,
)


@pytest.mark.parametrize("tenant_id", ["acme", "tenant_1762083064503", "_hospital", "a" * 63])
def test_valid_tenant_ids(tenant_id):
    assert validate_tenant_id(tenant_id) == tenant_id


@pytest.mark.parametrize(
    "tenant_id",
    [
        'acme"; DROP SCHEMA public CASCADE; --',
        "acme; rm -rf /",
        "Acme",
        "acme-corp",
        "1acme",
        "",
        "a" * 64,
        "$(whoami)",
        None,
    ],
)
def test_unsafe_tenant_ids_are_rejected(tenant_id):
    with pytest.raises(InvalidTenantIdentifier):
        validate_tenant_id(tenant_id)


@pytest.mark.parametrize("tenant_id", ["public", "information_schema", "pg_catalog", "pg_toast"])
def test_shared_schemas_are_rejected(tenant_id):
    with pytest.raises(InvalidTenantIdentifier):
        validate_tenant_id(tenant_id)


def test_quote_identifier():
    assert quote_identifier("acme") == '"acme"'
    with pytest.raises(InvalidTenantIdentifier):
        quote_identifier('acme" OR 1=1')


def test_storage_tiers_and_aliases():
    assert normalize_storage_tier("standard") == "standard"
    assert normalize_storage_tier("s3_ia") == "infrequent-access"
    assert normalize_storage_tier("b2_cold") == "cold"
    assert STORAGE_CLASSES[normalize_storage_tier("s3_standard")] == "STANDARD"


def test_unknown_storage_tier():
    with pytest.raises(InvalidStorageTier):
        normalize_storage_tier("tape")
