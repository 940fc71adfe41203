"""Hotel Academy package.

Organized by feature modules (courses, careers, organizations, search, ...)
with a thin Flask controller layer over service/repository layers.
"""
