"""
hostops - host facts and idempotent lifecycle operations over SSH.
"""
__version__ = '0.1.0'
