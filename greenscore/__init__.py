"""GreenScore badge scoring engine.

Turns customer yes/no votes on shop eco-practices into badge levels and a
composite Green Score.
"""

__version__ = "1.0.0"
