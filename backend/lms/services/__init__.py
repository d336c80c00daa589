# Services package init
"""
LMS Backend — Services Layer
=============================

What:  Business logic between routes (HTTP) and the database.

Service Inventory:
    - RateLimiter / presets:   fixed-window per-client request limits
    - RateLimitStore:          counter storage behind the limiters
    - GroupService:            study group listing, search, CRUD
    - UserService:             account creation and password login

Services raise lms.exceptions.ApiError subclasses and wrap ORM work in
translate_db_errors(); they never build HTTP responses.
"""
