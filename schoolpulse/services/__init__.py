"""SchoolPulse services.

- distress_service: multi-language distress classification, analysis
  cache, debounce and batch wrapper
- notification_engine: notification rules, delayed notification
  scheduling, external sink interface
"""
