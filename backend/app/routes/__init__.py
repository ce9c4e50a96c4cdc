# Routes package init
"""
Twinshot Backend — API Routes Package
=======================================

What:  HTTP route handlers that accept requests and return responses.
How:   Each route module handles one resource.

Route Inventory:
    - auth.py:      POST /auth/register, POST /auth/login
    - users.py:     GET/PUT /users/profile
    - friends.py:   /friends, /friends/requests, /friends/search,
                    /friends/request, /friends/respond, DELETE /friends/{id}
    - posts.py:     POST /posts, GET /posts/my, GET /feed, GET /uploads/{path}
    - reactions.py: POST /reactions, DELETE /reactions/{post_id}, POST /reports
    - meta.py:      GET/PUT /meta/daily-prompt
    - health.py:    GET /, GET /health

Routes stay thin: they extract request data, call one service, and shape the
response. Business rules live in services so they can be tested without HTTP.
"""
