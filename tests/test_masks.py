import numpy as np
import pytest

from pynonmatching.coupling.masks import ComponentMask, as_mask, component_coupling_map
from pynonmatching.errors import PreconditionViolation


def test_mask_selection():
    a = ComponentMask([True, False, True])
    assert a.to_indices().tolist() == [0, 2]
    assert a.cardinality() == 2
    assert a.selects(2) and not a.selects(1)
    assert ComponentMask.from_components([0, 2], 3) == a


def test_empty_mask_against_sized_mask():
    # an empty mask only acquires a length through the component count
    immersed = ComponentMask([True, False])
    cmap = component_coupling_map(ComponentMask(), 2, immersed, 2)
    assert cmap.tolist() == [[True, False], [False, False]]
    cmap = component_coupling_map(immersed, 2, ComponentMask(), 3)
    assert cmap.tolist() == [[True, False, False], [False, False, False]]


def test_empty_mask_selects_everything():
    m = ComponentMask()
    assert m.is_empty()
    assert m.selects(7)
    assert m.compact(3).tolist() == [0, 1, 2]
    assert m.cardinality(4) == 4
    with pytest.raises(ValueError):
        m.cardinality()


def test_compact_numbers_selected_components():
    m = ComponentMask([False, True, False, True])
    assert m.compact(4).tolist() == [-1, 0, -1, 1]
    with pytest.raises(PreconditionViolation):
        m.compact(3)


def test_coupling_map():
    space = ComponentMask([False, True])
    immersed = ComponentMask([True, False, False])
    table = component_coupling_map(space, 2, immersed, 3)
    # background component 1 is compacted to 0, as is immersed component 0
    assert table.tolist() == [[False, False, False], [True, False, False]]
    full = component_coupling_map(ComponentMask(), 2, ComponentMask(), 2)
    assert np.array_equal(full, np.eye(2, dtype=bool))


def test_as_mask_and_tokens():
    assert as_mask(None).is_empty()
    m = as_mask([True, False])
    assert isinstance(m, ComponentMask)
    assert as_mask(m) is m
    assert m == ComponentMask([True, False])
    assert m.cache_token == ComponentMask([True, False]).cache_token
    assert m.cache_token != ComponentMask([False, True]).cache_token
