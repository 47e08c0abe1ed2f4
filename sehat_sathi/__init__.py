"""
Sehat Sathi

A FastAPI-based telehealth backend: patient and doctor accounts,
token authentication, role-based access control and appointment scheduling.
"""

__version__ = "1.0.0"
