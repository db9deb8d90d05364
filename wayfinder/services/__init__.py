"""
Wayfinder API — Services Layer
===============================

What:  Business rules between routes (HTTP) and storage (JSON collections).

Service Inventory:
    - PoiService:          filter/paginate POIs by text, category, radius
    - RouteComputeService: resolve locations, call GraphHopper, normalize output
    - RouteService:        create/get/replace/patch/delete/list persisted routes
    - RouteRepository:     lock-protected read-modify-write over the route store
    - GraphHopperClient:   single-attempt HTTP client for the routing engine

Services receive their collaborators at construction (see main.create_app),
so tests can hand them in-memory stores and a fake routing engine.
"""
