# Services package init
"""
TravelStory Backend — Services Layer
=====================================

Business logic between routes (HTTP) and the database (persistence).

Service Inventory:
    - AuthService:  registration, login, bearer tokens
    - FileService:  image upload validation, storage and deletion
    - StoryService: owner-scoped story CRUD, search and date filter

Services hold configuration only; the per-request AsyncSession is passed
into each call.
"""
