"""Foodie: kitchen inventory, shopping list and cooking suggestions."""

__version__ = "0.1.0"
