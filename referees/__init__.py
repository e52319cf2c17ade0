"""Referees locaux - simulation des parties hors arène.

Dépend de game_sdk (Referee, protocole), jamais du package agent.
"""
