"""
Grid Robot Playground.

A small robot on a bounded grid with walls and countable objects, driven by a
learner-authored Python script and replayed step by step by a paced player.
"""

__version__ = "0.1.0"
