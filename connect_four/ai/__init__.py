"""
connect_four/ai/__init__.py - Training for the Connect Four networks

Evolution strategies and a genetic algorithm that improve the networks in
connect_four.players by playing games, plus the optimizer, evaluators and
training session around them.
"""

# Submodules are imported directly (connect_four.ai.es, ...) since the
# players package depends on connect_four.ai.utils.
__all__ = []
