"""NiceGUI interface - thin visualization layer for chat interactions.

Responsibilities:
    - Chat message display with live streaming updates
    - Stop and reset controls
    - API health indicator

Contains no business logic. Delegates everything to the session controller
in `src.client`.
"""
