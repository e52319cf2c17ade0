"""Service layer - orchestration des matchs.

Ce package contient les services utilisés par app.py.
Responsabilité : validation, orchestration des referees et des agents.
"""
