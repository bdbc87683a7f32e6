__all__ = ['json', 'Error', 'UsageError', 'show_error', 'is_windows']

import sys
import os
import json


class Error(Exception):
    """
    Base Error for kwtools.
    All Exceptions in the tool must be inherited from this.
    """
    def __str__(self):
        return "FATAL ERROR: %s\n" % (self.args)


class UsageError(Error):
    """
    Wrong usage of library functions or bad configuration.
    E.g. invalid choices for arguments.
    """
    def __str__(self):
        return "UsageError: %s\n" % (self.args)


def show_error(err_msg, usage_hint=False):
    sys.stderr.write(err_msg)
    if usage_hint:
        sys.stderr.write("  Try specifying 'help' as arguments to see the usage\n")


def is_windows():
    return sys.platform.startswith("win")


def get_directory_of_current_module(obj):
    module_path = sys.modules[obj.__module__].__file__
    return os.path.dirname(os.path.abspath(module_path))
