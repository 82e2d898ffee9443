"""HCMS training management API.

The package is organized by feature modules (crud, users, teachers, schools,
trainings, reports, ...) with a thin Flask controller layer over plain
service classes and a generic document store.
"""
