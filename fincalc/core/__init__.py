"""
Core numerical engines, domain models and result contracts.

Nothing here depends on the reactive layer: every engine is a pure function
of validated domain models.
"""
