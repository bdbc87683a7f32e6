__all__ = [
    'call',
    'kwlib',
    'modules',
]

VERSION = '1.0.0'

from kwtools.kwlib import mod_mgr


def call(cmd_name, options, args=(), call_back=mod_mgr.stdout_callback, call_back_args=None):
    """
    Runs a command from Python code. options replace the command line and
    configuration file, e.g.

        kwtools.call('xsync', {'kw_url': 'http://kw:8080', 'last_sync_type': 'full'})
    """
    exit_stat = mod_mgr.run_command(cmd_name, list(args), 'import', call_options=options,
            call_back=call_back, call_back_args=call_back_args)

    return exit_stat
