"""pynonmatching.coupling.masks"""
from __future__ import annotations

from hashlib import blake2b
from typing import Optional

import numpy as np

from pynonmatching.errors import PreconditionViolation


def _mask_cache_token(mask: np.ndarray) -> str:
    """Stable token for a boolean mask."""
    arr = np.asarray(mask, dtype=np.bool_, order="C")
    h = blake2b(digest_size=16)
    h.update(np.asarray(arr.shape, dtype=np.int64).tobytes())
    h.update(arr.view(np.uint8).tobytes())
    return h.hexdigest()


class ComponentMask:
    """
    Selection of vector components of a finite-element space.

    An empty mask (the default) selects every component, whatever their
    number. A non-empty mask must have exactly one entry per component.
    """

    def __init__(self, mask=()):
        self.mask = np.asarray(mask, dtype=bool).ravel()
        self._cache_token = _mask_cache_token(self.mask)

    @classmethod
    def all(cls) -> "ComponentMask":
        return cls(())

    @classmethod
    def from_components(cls, selected, n_components: int) -> "ComponentMask":
        mask = np.zeros(n_components, dtype=bool)
        mask[list(selected)] = True
        return cls(mask)

    def is_empty(self) -> bool:
        return self.mask.size == 0

    def selects(self, component: int) -> bool:
        return self.is_empty() or bool(self.mask[component])

    def cardinality(self, n_components: Optional[int] = None) -> int:
        if self.is_empty():
            if n_components is None:
                raise ValueError("An empty mask needs n_components to count its selection.")
            return int(n_components)
        return int(self.mask.sum())

    def to_indices(self, n_components: Optional[int] = None) -> np.ndarray:
        if self.is_empty():
            return np.arange(self.cardinality(n_components))
        return np.flatnonzero(self.mask)

    def check_size(self, n_components: int, name: str = "mask") -> None:
        if not self.is_empty() and len(self.mask) != n_components:
            raise PreconditionViolation(
                f"{name} has {len(self.mask)} entries but the space has "
                f"{n_components} components.")

    def compact(self, n_components: int) -> np.ndarray:
        """
        Global→local component map.

        Entry ``c`` is the rank of component ``c`` among the selected
        components, or ``-1`` when ``c`` is not selected.
        """
        self.check_size(n_components)
        selected = np.ones(n_components, dtype=bool) if self.is_empty() else self.mask
        gtl = np.full(n_components, -1, dtype=np.int64)
        gtl[selected] = np.arange(int(selected.sum()))
        return gtl

    @property
    def cache_token(self) -> str:
        return self._cache_token

    def __len__(self): return len(self.mask)
    def __getitem__(self, idx): return self.mask[idx]

    def __eq__(self, other):
        return isinstance(other, ComponentMask) and np.array_equal(self.mask, other.mask)

    def __hash__(self):
        return hash(self._cache_token)

    def __repr__(self):
        if self.is_empty():
            return "<ComponentMask all>"
        return f"<ComponentMask {self.cardinality()}/{len(self)}>"


def as_mask(mask) -> ComponentMask:
    """Accept ``None``, a :class:`ComponentMask` or any boolean sequence."""
    if mask is None:
        return ComponentMask()
    if isinstance(mask, ComponentMask):
        return mask
    return ComponentMask(mask)


def component_coupling_map(space_mask: ComponentMask, n_space_components: int,
                           immersed_mask: ComponentMask, n_immersed_components: int) -> np.ndarray:
    """
    Boolean ``(n_space_components, n_immersed_components)`` coupling table.

    Background component ``a`` couples to immersed component ``b`` when both
    are selected and they have the same compacted index.
    """
    space_gtl = space_mask.compact(n_space_components)
    immersed_gtl = immersed_mask.compact(n_immersed_components)
    return (space_gtl[:, None] != -1) & (space_gtl[:, None] == immersed_gtl[None, :])
