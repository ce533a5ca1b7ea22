"""Bookings app package.

This app encapsulates the booking domain: the booking model, the
availability and preparation-period queries over packages, and the booking
lifecycle commands. Every command runs in a single database transaction so
slot reservations and booking writes succeed or fail together.
"""
