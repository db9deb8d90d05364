"""
Wayfinder API — Pydantic Schemas
=================================

What:  The API contract: request bodies, response shapes, error envelope.
Modules:
    - common.py: camelCase base, GeoJSON LineString, envelopes, validation bridge
    - poi.py:    POI records and the filtered listing
    - route.py:  persisted routes, their create/replace/patch bodies, compute I/O
"""
