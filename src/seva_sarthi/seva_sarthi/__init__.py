"""Seva Sarthi Connect package.

Organized by feature modules (karyakars, locations, roles, permissions, tasks,
chat, ...) with a thin Flask JSON controller layer over service/repository layers.
"""
