"""
Dental clinic backend: billing, expenses, inventory and treatment plans
"""
__version__ = "1.0.0"
