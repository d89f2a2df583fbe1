"""Models and utilities shared by the distress service and notification engine."""
