"""Tests for trellis.cli._resolve: node tree import resolution."""

import types

import pytest

from trellis.cli._resolve import resolve_tree
from trellis.nodes import App, AppNode, Route


def _handler() -> str:
    return "ok"


@pytest.fixture
def _fake_app_module(monkeypatch: pytest.MonkeyPatch) -> None:
    """Register a fake module holding node trees on sys.modules."""
    mod = types.ModuleType("_fake_trellis_app")
    mod.app = App(Route(_handler, path="/", method="GET"))  # type: ignore[attr-defined]
    mod.custom = App(port=3000)  # type: ignore[attr-defined]
    mod.routes = [Route(_handler, path="/a", method="GET")]  # type: ignore[attr-defined]
    mod.build = lambda: App(port=4000)  # type: ignore[attr-defined]
    mod.broken = lambda: 1 / 0  # type: ignore[attr-defined]
    mod.not_a_tree = "just a string"  # type: ignore[attr-defined]
    monkeypatch.setitem(__import__("sys").modules, "_fake_trellis_app", mod)


@pytest.mark.usefixtures("_fake_app_module")
class TestResolveTree:
    def test_explicit_attribute(self) -> None:
        assert isinstance(resolve_tree("_fake_trellis_app:custom"), AppNode)

    def test_default_attribute(self) -> None:
        """Omitting :attr defaults to 'app'."""
        assert isinstance(resolve_tree("_fake_trellis_app"), AppNode)

    def test_list_tree(self) -> None:
        assert isinstance(resolve_tree("_fake_trellis_app:routes"), list)

    def test_factory_is_called(self) -> None:
        tree = resolve_tree("_fake_trellis_app:build")
        assert isinstance(tree, AppNode)
        assert tree.port == 4000

    def test_failing_factory_raises_type_error(self) -> None:
        with pytest.raises(TypeError, match="raised an error"):
            resolve_tree("_fake_trellis_app:broken")

    def test_missing_module(self) -> None:
        with pytest.raises(ModuleNotFoundError):
            resolve_tree("nonexistent_module_xyz:app")

    def test_missing_attribute(self) -> None:
        with pytest.raises(AttributeError):
            resolve_tree("_fake_trellis_app:does_not_exist")

    def test_not_a_tree(self) -> None:
        with pytest.raises(TypeError, match="not a trellis node tree"):
            resolve_tree("_fake_trellis_app:not_a_tree")
