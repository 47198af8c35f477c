"""
Use cases for the EV hub API.

Services orchestrate the repository and the pure domain rules and report
outcomes as typed results; routers translate those results to HTTP.
"""
