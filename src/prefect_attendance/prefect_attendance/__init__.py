"""Prefect Attendance package.

Offline-first attendance tracking organized by feature modules (storage, attendance,
admin) with a thin Flask controller layer over service/repository layers.
"""
