"""HRMS attendance & leave lifecycle engine.

This package is organized by feature modules (attendance, absence, leaves, ...)
with a thin Flask controller layer and service/repository layers underneath.
"""
