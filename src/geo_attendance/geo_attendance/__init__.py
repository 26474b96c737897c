"""Geofence Attendance package.

Feature modules (geo, attendance, devices, directory) with a thin Flask
controller layer on top of service/repository layers. Check-in and check-out
are gated by a device trust verdict and by proximity to a branch geofence.
"""
