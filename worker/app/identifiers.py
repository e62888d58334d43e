import re

from .errors import InvalidStorageTier, InvalidTenantIdentifier

TENANT_ID_PATTERN = re.compile(r"^[a-z_][a-z0-9_]{0,62}$")
RESERVED_SCHEMAS = {"public", "information_schema"}

STANDARD = "standard"
INFREQUENT_ACCESS = "infrequent-access"
COLD = "cold"

STORAGE_TIERS = (STANDARD, INFREQUENT_ACCESS, COLD)

STORAGE_TIER_ALIASES = {
    "s3_standard": STANDARD,
    "s3_ia": INFREQUENT_ACCESS,
    "b2_cold": COLD,
}

STORAGE_CLASSES = {
    STANDARD: "STANDARD",
    INFREQUENT_ACCESS: "STANDARD_IA",
    COLD: "GLACIER_IR",
}


def validate_tenant_id(value) -> str:
    if not isinstance(value, str) or not TENANT_ID_PATTERN.match(value):
        raise InvalidTenantIdentifier(f"tenant identifier {value!r} is not a valid schema name")
    if value in RESERVED_SCHEMAS or value.startswith("pg_"):
        raise InvalidTenantIdentifier(f"tenant identifier {value!r} names a shared schema")
    return value


def quote_identifier(value: str) -> str:
    # the allow-list excludes '"', so plain wrapping is exact
    return f'"{validate_tenant_id(value)}"'


def normalize_storage_tier(value) -> str:
    tier = STORAGE_TIER_ALIASES.get(value, value)
    if tier not in STORAGE_TIERS:
        raise InvalidStorageTier(
            f"unknown storage tier {value!r}; expected one of {', '.join(STORAGE_TIERS)}"
        )
    return tier
