# Services package init
"""
ParcelFlow Backend — Services Layer
=====================================

What:  Business rules between the routes (HTTP) and the repositories (SQL).
How:   Each service is a stateless module-level singleton; the request's
       AsyncSession is passed to every call, so one request is one
       transaction no matter how many services it touches.

Service Inventory:
    - ParcelService:   create/list/delete, Assign, Pick, Deliver
    - PaymentService:  RecordPayment, payment history, payment intents
    - RiderService:    applications, listings, Approve/Reject + role promotion
    - CashoutService:  Cashout, ListCashouts
    - UserService:     login upsert, role read/write, admin search
    - TrackingService: append-only tracking log
    - TokenVerifier (abstract) / FirebaseTokenVerifier: bearer credentials
    - PaymentGateway (abstract) / StripePaymentGateway: card payment intents
"""
