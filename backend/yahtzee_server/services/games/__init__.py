"""Game domain services: scoring, turn rules, cheating, overlays and timers.

This package holds the state rules that socket handlers reach through
``yahtzee_server.match.Match``. Nothing here knows about Socket.IO; the
functions return ``Outcome`` objects that the match publishes.
"""
