"""
Tests for the catalog — construction, aliases, and the built-in table.
"""

import pytest

from maziq.core.catalog import Catalog
from maziq.core.errors import ConfigError
from maziq.core.models.software import InstallerKind, DetectionMethod, SoftwareKind


def _raw(sid: str, **kw) -> dict:
    data = {"id": sid, "installer": "brew", "detection": {"method": "manual"}}
    data.update(kw)
    return data


class TestCatalog:
    def test_lookup_by_id_and_alias(self):
        catalog = Catalog.from_dicts([_raw("rust_stable", aliases=["rust"])])
        assert catalog.canonical("rust") == "rust_stable"
        assert catalog.get("rust").id == "rust_stable"
        assert "rust" in catalog
        assert "go" not in catalog
        assert catalog.get("go") is None

    def test_duplicate_id(self):
        with pytest.raises(ConfigError, match="Duplicate"):
            Catalog.from_dicts([_raw("go"), _raw("go")])

    def test_alias_collides_with_id(self):
        with pytest.raises(ConfigError, match="collides"):
            Catalog.from_dicts([_raw("go"), _raw("golang", aliases=["go"])])

    def test_invalid_entry(self):
        with pytest.raises(ConfigError, match="'broken'"):
            Catalog.from_dicts([{"id": "broken", "installer": "nope", "detection": {"method": "manual"}}])

    def test_iteration_keeps_order(self):
        catalog = Catalog.from_dicts([_raw("b"), _raw("a")])
        assert catalog.ids == ["b", "a"]
        assert [sw.id for sw in catalog] == ["b", "a"]
        assert len(catalog) == 2

    def test_categories(self):
        catalog = Catalog.from_dicts([_raw("a", category="Browsers"), _raw("b")])
        grouped = catalog.categories()
        assert [sw.id for sw in grouped["Browsers"]] == ["a"]
        assert [sw.id for sw in grouped["Uncategorized"]] == ["b"]


class TestBuiltinCatalog:
    @pytest.fixture(scope="class")
    def catalog(self) -> Catalog:
        return Catalog.builtin()

    def test_loads(self, catalog):
        assert len(catalog) >= 30

    def test_dependencies_exist(self, catalog):
        for sw in catalog:
            for dep in sw.dependencies:
                assert dep in catalog, f"{sw.id} depends on unknown {dep}"

    def test_gui_apps_are_casks(self, catalog):
        for sw in catalog:
            if sw.kind is SoftwareKind.GUI:
                assert sw.installer is InstallerKind.BREW_CASK, sw.id

    def test_rust_alias(self, catalog):
        sw = catalog.get("rust")
        assert sw.id == "rust_stable"
        assert sw.installer is InstallerKind.RUSTUP
        assert sw.dependencies == ("rustup",)

    def test_nvm_is_manual_detection(self, catalog):
        assert catalog.get("nvm").detection.method is DetectionMethod.MANUAL
