"""
coralpair: deterministic constant-product pair-state engine
"""

__version__ = "0.1.0"
