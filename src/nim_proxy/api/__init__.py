"""
Couche API FastAPI.
"""
