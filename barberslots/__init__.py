"""
barberslots - bookable appointment slots for barbershops.
"""

__version__ = "0.1.0"
