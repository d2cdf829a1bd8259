"""
Agent Deck - tracks tmux-hosted AI coding agents and infers their activity
"""

__version__ = "1.0.0"
