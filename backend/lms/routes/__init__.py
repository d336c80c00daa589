# Routes package init
"""
LMS Backend — API Routes Package
=================================

What:  HTTP route handlers that accept requests and return responses.

Route Inventory:
    - health.py:  GET    /health                 (service health check)
    - auth.py:    POST   /api/auth/login         (password login, `auth` limit)
    - groups.py:  GET    /api/groups             (paginated list)
                  GET    /api/groups/search      (search, `search` limit)
                  GET    /api/groups/{id}        (detail)
                  POST   /api/groups             (create)
                  DELETE /api/groups/{id}        (soft delete)
    - users.py:   POST   /api/users              (create account, admin only)

Routes stay thin: they extract parameters, call a service and return its
result. They never build error bodies; @with_error_handler and the
registered exception handlers do.
"""
