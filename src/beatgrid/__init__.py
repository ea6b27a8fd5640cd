"""
beatgrid: a 16-step drum machine with procedurally synthesized percussion.
"""

__version__ = "0.1.0"
