# customers/models/__init__.py

from .customer import Customer

__all__ = ["Customer"]
