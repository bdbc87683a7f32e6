#!/usr/bin/env python
import sys

from kwtools.kwlib import commons
from kwtools.kwlib import mod_mgr
from kwtools.kwlib import log_mgr

logger = log_mgr.mods.add_mod(__name__)


def main(argv):
    if len(argv) < 2:
        commons.show_error("Missing command\n", usage_hint=True)
        return False

    curr_cmd_name = None
    if '-h' in argv[1:] and len(argv) == 2:
        curr_cmd_name = 'help'
        args = ['help']
    else:
        args = argv[1:]
        for arg in args:
            if not arg.startswith('-'):
                curr_cmd_name = arg
                break

    if not curr_cmd_name:
        commons.show_error("Missing command\n", usage_hint=True)
        return False

    cmd_args = list(args)
    cmd_args.remove(curr_cmd_name)

    try:
        exit_stat = mod_mgr.run_command(curr_cmd_name, cmd_args, 'shell')
    except commons.UsageError as e:
        commons.show_error(str(e), usage_hint=True)
        return False
    except commons.Error as e:
        logger.exception(str(e))
        commons.show_error(str(e))
        return False

    return exit_stat


def run():
    exit_stat = main(sys.argv)
    if not exit_stat:
        sys.exit(1)
    else:
        sys.exit(0)

if __name__ == "__main__":
    run()
