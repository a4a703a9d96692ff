"""Daycare attendance package.

Organized by feature modules (attendance, pickups, families, programs, kiosk)
with a thin Flask controller layer over service/repository layers.
"""
