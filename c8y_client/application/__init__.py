"""
Application Layer

Use cases orchestrating the domain: loading and refreshing mirrored asset
trees through the inventory gateway.
"""
