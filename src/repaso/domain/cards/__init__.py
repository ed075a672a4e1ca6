# Domain Cards Package
from .models import Card, CardClass
from .ports import CardRepository

__all__ = ["Card", "CardClass", "CardRepository"]
