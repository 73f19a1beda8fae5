"""Academy attendance & seat-assignment engine.

This package is organized by feature modules (seats, assignments, attendance,
pins, checklinks, stats) with a thin Flask controller layer over
service/repository layers.
"""
