"""
Logger registry of kwtools.

Every module registers its logger once, at import time:

    from kwtools.kwlib import log_mgr
    logger = log_mgr.mods.add_mod(__name__)

The command line (-d, -v, -q, --debugmods) and the log_level config item
then change the levels of all registered loggers, or of single ones.
"""

import logging

LOG_FORMAT = '%(levelname)s - %(name)s - %(message)s'
COMMAND_MODULES_PREFIX = 'kwtools.modules'


class LoggerModules:
    def __init__(self):
        self.modules = []
        self.default_level = logging.WARNING

    def add_mod(self, modname):
        if modname not in self.modules:
            self.modules.append(modname)
            self.set_level(modname, self.default_level)
        return logging.getLogger(modname)

    def set_level(self, modname, level):
        # Command modules may be debugged before they are imported
        if modname not in self.modules and not modname.startswith(COMMAND_MODULES_PREFIX):
            raise KeyError(modname)
        logging.getLogger(modname).setLevel(level)

    def set_all_level(self, level):
        self.default_level = level
        for modname in self.modules:
            self.set_level(modname, level)


def _add_console_handler():
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logging.getLogger().addHandler(handler)


mods = LoggerModules()
mods.add_mod('')

from kwtools import kwlib
for _modname in kwlib.__all__:
    mods.add_mod('%s.%s' % (kwlib.__name__, _modname))

_add_console_handler()
