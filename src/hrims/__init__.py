"""HRIMS package.

Organized by feature modules (employees, departments, positions, grades, loans,
overtime, auth, ...) with a thin Flask controller layer on top of service and
repository layers.
"""
