"""
Domain Layer

Entities, services and gateway contracts of the Cumulocity client. Nothing
in this layer performs I/O.
"""
