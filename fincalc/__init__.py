"""
fincalc — reactive personal-finance calculation engine.

Packages:
- fincalc.core: pure numerical engines, domain models and result contracts
- fincalc.reactive: field parsing, validation, dependency tracking and the
  reactive calculator core
- fincalc.calculators: ready-made loan, bond and portfolio calculators
"""

__version__ = "0.1.0"
