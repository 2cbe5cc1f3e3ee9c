from .element import FiniteElement
from .mapping import MappingQ1
__all__ = ['FiniteElement', 'MappingQ1']
