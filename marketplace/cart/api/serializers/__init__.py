from .cart_serializers import CartLineSerializer


__all__ = ["CartLineSerializer"]
