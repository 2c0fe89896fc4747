"""WebSocket connection admission and routing.

Every inbound upgrade is classified by its first path segment into a role
(``call`` or ``logs``). Each role holds at most one live connection; a new
arrival closes the previous one before it is handed to the role's handler.
"""
