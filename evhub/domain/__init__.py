"""Pure domain rules (roles, station validation, capacity, geo)."""
