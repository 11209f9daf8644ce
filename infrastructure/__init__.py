"""
Infrastructure Package
======================

Abstraction layers for the external systems the marketplace talks to.

Modules:
    - payments: Transfer provider abstraction (Stripe Connect, mock)
    - events: Domain event bus (Redis pub/sub, in-memory)
    - container: Service locator wiring providers into marketplace services
"""
