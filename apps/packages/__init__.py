"""Packages app package.

Planners publish bookable packages here. Besides the package record itself
the app owns the per-package capacity data: the default slot count, the
date-specific overrides that carry booked-slot counters, and manually
blacked-out dates.
"""
