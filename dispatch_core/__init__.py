"""
Fuel Dispatch project package.

Holds the Django settings, root URL configuration and the pieces shared by
every app (environment loading, API error handling).
"""

__version__ = '0.1.0'
