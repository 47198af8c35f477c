"""
FastAPI routers grouped by domain (auth, stations, EV owners).

Each module exposes an APIRouter included by evhub.app.create_app(). Routers
run the access gates from deps.py and delegate to the services.
"""
