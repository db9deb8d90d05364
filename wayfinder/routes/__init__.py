"""
Wayfinder API — Routes Package
===============================

Route Inventory:
    - pois.py:          GET    /pois, /pois/{id}
    - compute.py:       POST   /routes/compute
    - saved_routes.py:  POST/GET /routes, GET/PUT/PATCH/DELETE /routes/{id}
    - health.py:        GET    /health

Routes stay thin: pull parameters out of the request, call a service,
set status codes and headers. Rules live in the services.
"""
