"""Tests for trellis.__init__: lazy import registry covers all public names."""

import pytest

import trellis


@pytest.mark.parametrize("name", trellis.__all__)
def test_all_names_resolve(name: str) -> None:
    """Every name in __all__ must resolve via __getattr__ without error."""
    obj = getattr(trellis, name)
    assert obj is not None, f"trellis.{name} resolved to None"


def test_all_names_in_lazy_registry() -> None:
    missing = set(trellis.__all__) - set(trellis._LAZY_IMPORTS)
    assert not missing, f"Names in __all__ but not in _LAZY_IMPORTS: {sorted(missing)}"


def test_lazy_registry_no_extras() -> None:
    extras = set(trellis._LAZY_IMPORTS) - set(trellis.__all__)
    assert not extras, f"Names in _LAZY_IMPORTS but not in __all__: {sorted(extras)}"


def test_unknown_name_raises_attribute_error() -> None:
    with pytest.raises(AttributeError, match="no attribute"):
        trellis.__getattr__("ThisDoesNotExist")


def test_middleware_name_is_the_node_builder() -> None:
    from trellis.nodes import MiddlewareNode

    assert isinstance(trellis.Middleware(lambda request, next, response: next()), MiddlewareNode)
