"""
Infrastructure Layer

Implementations of the domain gateways against the Cumulocity REST API.
"""
