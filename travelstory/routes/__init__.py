# Routes package init
"""
TravelStory Backend — API Routes Package
=========================================

Route Inventory:
    - auth.py:     POST /create-account, POST /login, GET /get-user
    - images.py:   POST /image-upload, DELETE /delete-image
    - stories.py:  story CRUD, /update-is-favorite, /search, /travel-stories/filter
    - health.py:   GET /health

Routes stay thin: extract request data, call a service, shape the response.
"""
