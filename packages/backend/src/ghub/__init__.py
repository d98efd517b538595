"""GHUB — personal fitness and wellness tracker.

Authenticated users log workouts, measurements, daily wellness metrics,
goals, sobriety milestones, recipes, travel entries and blog posts.
This package holds the session/authorization gate every page depends on,
the user-scoped data gateway, and a reference backend serving both.
"""

__version__ = "0.1.0"
