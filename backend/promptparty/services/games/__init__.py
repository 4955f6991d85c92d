"""Game domain services: round engine, dealing, scoring and finalize.

This package holds the game rules and is imported by the HTTP blueprints,
keeping transport concerns separated from core game mechanics.
"""
