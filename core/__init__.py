"""Core application for the Ebers clinic backend.

This package contains the models, services, serializers, views and route
registrations implementing the API contract expected by the front-end
application, plus the desktop packaging commands.
"""
