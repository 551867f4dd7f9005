"""
archfolio - configuration resolution for an architect's portfolio site.

Nothing is loaded at import time; build a `ConfigurationManager` explicitly:

    from archfolio.config import ConfigurationManager, ManagerOptions
    manager = ConfigurationManager(ManagerOptions(environment="production"))
    manager.initialize()
"""

__version__ = "0.1.0"
