"""Scoreboard domain services: match rules, bracket rules and their sessions.

The ``engine`` modules hold pure state transitions. Sessions wrap them with
serialization, the round clock, persistence and broadcasting, keeping
transport concerns in the blueprints and socket handlers.
"""
