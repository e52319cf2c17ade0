"""Agent core - pathfinding and pellet targeting.

Ce package contient le moteur de décision du bot :
Grid (topologie), PathFinder (A*), trackers de pellets/pacs et TurnPlanner.
Aucune I/O ici : le transport (game_sdk, bot.py) alimente GameState.
"""
