"""
Core utilities shared across the EV hub API.

This package hosts configuration, logging setup and password hashing.
Services and routers should depend on these primitives instead of reading
os.environ or configuring handlers on their own.
"""
