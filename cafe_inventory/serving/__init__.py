"""
Serving Module

HTTP surface over the inventory service.
"""
