"""Game session domain: lifecycle state machine, recording and scoring.

The aggregate (``GameSession`` with its ``Question``s) is plain Python and
knows nothing about Flask, the database or Socket.IO. ``SessionService``
is the command surface used by HTTP routes; repositories load and store
aggregates.
"""
