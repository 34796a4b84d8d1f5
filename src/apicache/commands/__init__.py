"""Built-in CLI sub-commands for apicache.

* :mod:`~apicache.commands.cache` -- inspect, clean and clear the cache,
  and fetch through it.
* :mod:`~apicache.commands.config` -- view and modify global settings.
"""
