"""
Routes package for the vegan guides API
Blueprint-based modular route organization
"""

from quart import Quart


def register_blueprints(app: Quart):
    """
    Register all route blueprints with the Quart app

    Admin routes (health, metrics) first, then the public API.
    """
    from .admin import register as register_admin
    from .restaurants import register as register_restaurants
    from .chat import register as register_chat

    register_admin(app)
    register_restaurants(app)
    register_chat(app)
