"""
skillpath
A deterministic engine that turns a skill catalog, a target role and a user's
declared skill levels into a progression graph, a gap report and achievements.
"""

__version__ = "0.1.0"
