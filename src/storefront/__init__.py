"""Storefront order placement and inventory-consistency engine."""
