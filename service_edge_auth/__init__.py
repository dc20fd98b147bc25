"""
Hosting edge auth service.
"""
