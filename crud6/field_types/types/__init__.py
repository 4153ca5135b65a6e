from .currency import CurrencyFieldType

__all__ = ["CurrencyFieldType"]
