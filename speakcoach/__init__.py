"""
Speak Coach: pronunciation practice with scoring, feedback and XP progression.
"""

__version__ = "0.1.0"
