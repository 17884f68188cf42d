"""Campus Marketplace Package — listings, buyer/seller messaging, cart and checkout.

Invariants:
    - Package root imports nothing (import side-effects prohibited)
"""

__version__ = "1.0.0"
