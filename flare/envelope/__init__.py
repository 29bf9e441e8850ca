from .envelope import Envelope
from .item import Item

__all__ = ["Envelope", "Item"]
