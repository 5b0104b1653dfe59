"""Infrastructure layer - driver-facing code.

This layer contains the interception machinery and the SQLAlchemy
integration that applies it to dialect classes.
"""
