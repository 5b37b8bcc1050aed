"""
Exercise engine: staircase, stimuli, timed sessions, scoring, profile updates
and recommendations.

Submodules are imported directly (``from wmcoach.engine.session import
ExerciseSession``) so that the models can depend on the staircase levels.
"""
