"""
Wayfinder API — Middleware Package
===================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (execution order):
    Request → [Request ID] → [Logging] → [CORS] → [Auth + Rate Limit] → [GZip] → Route Handler

    Why this order:
    1. Request ID first: every later log line, including rejections, carries it
    2. Logging: sees the final status of every request, 401/429 included
    3. CORS before auth: preflights are answered and rejections still carry
       CORS headers, so browsers can read the error body
    4. Auth + rate limit: rejects before any service work happens
"""
