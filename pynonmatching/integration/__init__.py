from .quadrature import Quadrature, gauss, gauss_legendre
__all__ = ['Quadrature', 'gauss', 'gauss_legendre']
