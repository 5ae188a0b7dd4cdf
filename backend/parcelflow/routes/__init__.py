# Routes package init
"""
ParcelFlow Backend — API Routes Package
=========================================

What:  HTTP route handlers. Each module handles one resource.

Route Inventory:
    - health.py:    GET /, GET /health
    - users.py:     POST /users, GET /users/search, GET|PATCH /users/{email}/role
    - parcels.py:   GET|POST /parcels, GET|DELETE /parcels/{id},
                    PATCH /parcels/{id}/assign, PATCH /parcels/{id}/pick
    - riders.py:    POST /riders, GET /riders/pending, GET /riders/approved,
                    GET /riders, PATCH /riders/{id}/status
    - rider.py:     GET /rider/parcels, PATCH /rider/parcels/{id}/status,
                    POST /rider/cashout
    - payments.py:  GET|POST /payments, POST /create-payment-intent
    - cashouts.py:  GET /cashouts
    - tracking.py:  POST /tracking, GET /tracking/{trackingId}

Routes stay thin: read the request, call one service, wrap the result in
the {success, message, data} envelope. Access rules are declared in each
handler's dependencies.
"""
