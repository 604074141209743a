"""Built-in CLI sub-commands for proctor.

* :mod:`~proctor.commands.procs` -- ``list``, ``describe``, ``execute`` and
  ``logs``, registered directly on the root app.
* :mod:`~proctor.commands.config` -- the ``config`` sub-command group.
"""
