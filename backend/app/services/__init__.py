# Services package init
"""
Twinshot Backend — Services Layer
==================================

What:  Business logic layer sitting between routes (HTTP) and database (persistence).
How:   Services receive the request's AsyncSession per call, apply the rules,
       and return Pydantic schemas or ORM objects. Failures are raised as
       exceptions from `app.exceptions`.

Service Inventory:
    - AccountService: register, login, token issuance, profile edit
    - FriendshipService: request / respond / unfriend, friend lists, search
    - PostService: daily-post admission rule, own posts, today's friend feed
    - ImageCompositor: side-by-side composite builder (Pillow)
    - FileService: upload validation, storage, cleanup
    - ReactionService: reactions (last write wins) and reports
    - PromptService: the shared daily prompt
"""
