"""SchoolPulse wellbeing core.

Turns student free-text feedback into distress analyses and routes
high-risk analyses to teachers and administrators:

    text -> distress_service (classifier, cache, debounce/batch)
         -> notification_engine (rules, scheduler, external sink)
"""

__version__ = "0.3.0"
