# Routes package init
"""
Stockroom — API Routes Package
================================

What:  HTTP route handlers, one module per service surface.

Route Inventory:
    - inventory.py: GET/POST /inventory             (SERVICE=inventory)
    - orders.py:    POST /orders                     (SERVICE=orders)
    - users.py:     GET  /users/{id}                 (SERVICE=users)
    - web.py:       GET /, GET /inventory,
                    POST /inventory/add (HTML)       (SERVICE=web)
    - health.py:    GET  /health                     (every service)

Routes are THIN: extract request data, call a service, shape the response.
"""
