"""
Tests for dependency resolution — closure, ordering, cycles, plans.
"""

import pytest

from maziq.core.catalog import Catalog
from maziq.core.engine.resolver import closure, dependents_of, plan, resolve
from maziq.core.errors import DependencyCycle, MissingDependency, ResolutionError
from maziq.core.models.action import Action


def _catalog(graph: dict[str, list[str]], aliases: dict[str, list[str]] | None = None) -> Catalog:
    aliases = aliases or {}
    return Catalog.from_dicts([
        {
            "id": sid,
            "installer": "script",
            "detection": {"method": "manual"},
            "dependencies": deps,
            "aliases": aliases.get(sid, []),
        }
        for sid, deps in graph.items()
    ])


class TestResolve:
    def test_chain(self):
        catalog = _catalog({"a": ["b"], "b": ["c"], "c": []})
        assert resolve(["a"], catalog) == ["c", "b", "a"]

    def test_lexical_tie_break(self):
        catalog = _catalog({"zed": [], "alpha": [], "mid": []})
        assert resolve(["zed", "mid", "alpha"], catalog) == ["alpha", "mid", "zed"]

    def test_input_order_does_not_matter(self):
        catalog = _catalog({"app": ["lib", "tool"], "lib": ["base"], "tool": ["base"], "base": []})
        first = resolve(["app", "tool"], catalog)
        second = resolve(["tool", "app"], catalog)
        assert first == second == ["base", "lib", "tool", "app"]

    def test_diamond_appears_once(self):
        catalog = _catalog({"top": ["l", "r"], "l": ["root"], "r": ["root"], "root": []})
        order = resolve(["top"], catalog)
        assert order.count("root") == 1
        assert order[0] == "root"
        assert order[-1] == "top"

    def test_dependencies_precede_dependents(self):
        catalog = Catalog.builtin()
        order = resolve(["simple_http_server", "claude_cli"], catalog)
        for sid in order:
            for dep in catalog.get(sid).dependencies:
                assert order.index(dep) < order.index(sid)

    def test_two_node_cycle(self):
        catalog = _catalog({"a": ["b"], "b": ["a"]})
        with pytest.raises(DependencyCycle) as exc:
            resolve(["a"], catalog)
        assert set(exc.value.members) == {"a", "b"}
        assert "a → b → a" in str(exc.value)

    def test_cycle_reported_without_bystanders(self):
        catalog = _catalog({"app": ["x"], "x": ["y"], "y": ["z"], "z": ["x"]})
        with pytest.raises(DependencyCycle) as exc:
            resolve(["app"], catalog)
        assert exc.value.members == ["x", "y", "z"]

    def test_unknown_requested(self):
        catalog = _catalog({"a": []})
        with pytest.raises(MissingDependency) as exc:
            resolve(["nope"], catalog)
        assert exc.value.software_id == "nope"
        assert exc.value.required_by is None

    def test_unknown_dependency(self):
        catalog = _catalog({"a": ["ghost"]})
        with pytest.raises(ResolutionError, match="'a' depends on unknown software 'ghost'"):
            resolve(["a"], catalog)

    def test_alias_is_canonicalised(self):
        catalog = _catalog({"rust_stable": ["rustup"], "rustup": []}, {"rust_stable": ["rust"]})
        assert resolve(["rust"], catalog) == ["rustup", "rust_stable"]
        assert closure(["rust", "rust_stable"], catalog) == {
            "rust_stable": ("rustup",),
            "rustup": (),
        }


class TestPlan:
    def test_install_order(self):
        catalog = _catalog({"a": ["b"], "b": []})
        assert plan(["a"], catalog, Action.INSTALL) == ["b", "a"]

    def test_uninstall_reverses_requested_only(self):
        catalog = _catalog({"a": ["b"], "b": ["c"], "c": []})
        assert plan(["a", "b"], catalog, Action.UNINSTALL) == ["a", "b"]
        assert plan(["a"], catalog, Action.UNINSTALL) == ["a"]

    def test_dependents_of(self):
        catalog = _catalog({"a": ["c"], "b": ["c"], "c": []})
        reverse = dependents_of(["c", "a", "b"], catalog)
        assert reverse == {"c": ["a", "b"], "a": [], "b": []}
        assert dependents_of(["c", "a"], catalog)["c"] == ["a"]
