import pytest

from catalog_sync.infrastructure.sync import schema
from catalog_sync.infrastructure.sync.schema import SchemaGuard, additive_change_placeholder
from catalog_sync.shared.exceptions import SchemaDriftError
from tests.conftest import FakeCatalogStore


def test_verify_passes_when_all_columns_present():
    SchemaGuard(FakeCatalogStore()).verify("currency", ["id", "rate"])


def test_verify_compares_case_insensitively():
    store = FakeCatalogStore()
    store.columns["currency"] = ["ID", "Rate"]
    SchemaGuard(store).verify("currency", ["id", "RATE"])


def test_verify_reports_missing_columns():
    store = FakeCatalogStore()
    store.columns["offers"].remove("vendor_code")
    with pytest.raises(SchemaDriftError) as exc:
        SchemaGuard(store).verify("offers", ["id", "vendor_code", "name"])
    err = exc.value
    assert err.missing_columns == ["vendor_code"]
    assert err.details == {"table": "offers", "missing_columns": ["vendor_code"]}
    assert err.error_code == "SCHEMA_DRIFT"


def test_verify_missing_table_reports_every_column():
    with pytest.raises(SchemaDriftError) as exc:
        SchemaGuard(FakeCatalogStore()).verify("unknown_table", ["a", "b"])
    assert exc.value.missing_columns == ["a", "b"]


@pytest.mark.parametrize("ddl", [schema.CURRENCY_DDL, schema.CATEGORIES_DDL, schema.OFFERS_DDL])
def test_ddl_is_idempotent(ddl):
    assert "CREATE TABLE IF NOT EXISTS" in ddl
    assert "CREATE TABLE " not in ddl.replace("CREATE TABLE IF NOT EXISTS", "")


def test_offers_ddl_creates_params_table_with_cascade():
    assert "offer_params" in schema.OFFERS_DDL
    assert "ON DELETE CASCADE" in schema.OFFERS_DDL
    assert "vendor_code VARCHAR(100) UNIQUE NOT NULL" in schema.OFFERS_DDL


def test_additive_change_is_explicitly_unsupported():
    change = additive_change_placeholder("offers")
    assert change.supported is False
    assert change.statement == "-- ALTER TABLE offers ADD COLUMN new_column_name data_type;"
    assert change.statement.startswith("--")
