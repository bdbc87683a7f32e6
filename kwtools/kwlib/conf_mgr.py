import sys
import os
import argparse
import collections
import configparser
import shlex
import logging

from kwtools.kwlib import log_mgr
from kwtools.kwlib.commons import UsageError

__all__ = ['Config']

logger = log_mgr.mods.add_mod(__name__)

DEFAULT_CONFIG_FILE = os.path.join("~", ".kwtools.cnf")
GLOBAL_SECTION = 'global'

LOG_LEVELS = {
    'debug': logging.DEBUG,
    'verbose': logging.INFO,
    'default': logging.WARNING,
    'error': logging.ERROR,
    'quiet': logging.CRITICAL,
    }

BOOLEAN_VALUES = {
    'true': True,
    'yes': True,
    'on': True,
    '1': True,
    'false': False,
    'no': False,
    'off': False,
    '0': False,
    }

# INI sections of the form [<kind>:<name>] are collected into these settings
SECTION_KINDS = {
    'server': 'server_configs',
    'install': 'install_configs',
    }

Option = collections.namedtuple('Option', ['var_name', 'help_title', 'default', 'meta_var', 'flags'])


class Config(object):
    """
    Settings of one command invocation.

    The command module registers its options (add_custom_option), then the
    values are filled from the [global] section of the configuration file
    and from the command line, or from the call options when kwtools is
    used as a library. Command line values win over the file.

    An option registered with default None is mandatory.

    Usage sample:
        prj_name = config['server_project']
    """
    DEFAULTS = {
            'conf_file': DEFAULT_CONFIG_FILE,
            'log_level': logging.WARNING,
            'debug_mods': '',
            'args': None,
            'server_configs': {},
            'install_configs': {},
        }

    def __init__(self, cmd_name, command_list, args, ret_chn, call_src, call_options=None):
        if call_src not in ['shell', 'import']:
            raise UsageError("Invalid config source %s" % (call_src))

        self.cmd_name = cmd_name
        self.call_src = call_src
        self.command_list = command_list
        self.ret_chn = ret_chn
        self.emit = ret_chn.emit
        self.settings = dict(self.DEFAULTS, server_configs={}, install_configs={})
        self.option_groups = collections.OrderedDict()
        self.parser = None
        self.call_options = call_options or {}
        self.args = args

    def copy(self, cmd_name):
        """
        Returns a fresh configuration for another command sharing the same channel
        """
        return Config(cmd_name, self.command_list, [], self.ret_chn, self.call_src)

    def __getitem__(self, key):
        try:
            return self.settings[key]
        except KeyError:
            raise KeyError('Undefined configuration item: %s' % (key))

    def __setitem__(self, key, val):
        if key not in self.settings:
            raise KeyError('Unknown configuration item: %s' % (key))
        self.settings[key] = val

    def __contains__(self, key):
        return key in self.settings

    def get(self, key, default=None):
        return self.settings.get(key, default)

    def options(self):
        for group in self.option_groups.values():
            for option in group:
                yield option

    def add_custom_option(self, var_name, help_title, short_form=None,
            default='', meta_var=None, group_name=None):
        """
        Registers the option --<var_name> (and -<short_form> if given). The
        same name is read from the [global] section of the config file.

        String defaults make the option optional, None makes it mandatory.
        Options sharing a group_name are listed together in the help.
        """
        var_name = var_name.lower()
        if var_name in self.settings:
            logger.warning('Option %s is already defined, ignoring the new definition' % (var_name))
            return

        if default is not None:
            help_title = '%s [optional%s]' % (help_title, ', default: %s' % default if default else '')

        flags = ['--%s' % (var_name)]
        if short_form:
            flags.append('-%s' % (short_form))

        option = Option(var_name, help_title, default, meta_var or var_name.upper(), flags)
        self.settings[var_name] = default
        self.option_groups.setdefault(group_name or 'Module-specific options', []).append(option)

    def process_boolean_config(self, key):
        val = self[key]
        if type(val) is bool:
            return val
        if val is None or str(val).strip().lower() not in BOOLEAN_VALUES:
            raise UsageError("Invalid value for %s: expected True or False, got '%s'" % (key, val))
        self[key] = BOOLEAN_VALUES[str(val).strip().lower()]
        return self[key]

    def _parse_section(self, cnf, section):
        kind, _, name = [x.strip() for x in section.partition(':')]
        if kind not in SECTION_KINDS or not name:
            logger.info('Ignoring unknown config file section [%s]' % (section))
            return
        items = dict(cnf.items(section))
        items['name'] = name
        self[SECTION_KINDS[kind]][name] = items

    def _read_config_file(self, file_name):
        cnf = configparser.ConfigParser(interpolation=None)
        # Keep the case of option names
        cnf.optionxform = str
        if file_name == '-':
            cnf.read_file(sys.stdin)
            return cnf

        path = os.path.expanduser(file_name)
        try:
            found = cnf.read(path)
        except configparser.Error as err:
            raise UsageError('Unable to parse config file %s: %s' % (file_name, err))
        if found:
            return cnf
        if path == os.path.expanduser(DEFAULT_CONFIG_FILE):
            logger.debug('Default config file %s not found' % (path))
            return None
        raise UsageError('Config file %s not found' % (file_name))

    def parse_config_file(self, file_name):
        if not file_name:
            return
        cnf = self._read_config_file(file_name)
        if cnf is None:
            return

        for section in cnf.sections():
            if section != GLOBAL_SECTION:
                self._parse_section(cnf, section)

        if not cnf.has_section(GLOBAL_SECTION):
            return
        known_keys = ['log_level', 'debug_mods', 'args'] + [option.var_name for option in self.options()]
        for key, val in cnf.items(GLOBAL_SECTION):
            if key not in known_keys:
                logger.info('Ignoring unknown config file item %s' % (key))
            elif key == 'args':
                self[key] = shlex.split(val)
            elif key == 'log_level':
                if val.strip() not in LOG_LEVELS:
                    raise UsageError('Unknown log_level "%s" in config file. Expected one of: %s' %
                        (val, ', '.join(sorted(LOG_LEVELS))))
                self[key] = LOG_LEVELS[val.strip()]
            else:
                self[key] = val

    def prepare_parser(self, cmd_inst):
        usage = "%%(prog)s %s [Options] %s\n" % (cmd_inst.name, cmd_inst.conf_syntax)
        if cmd_inst.conf_help:
            usage += '%s\n' % (cmd_inst.conf_help)
        usage += "\n Hint: %(prog)s help -> List commands\n"
        usage += " Hint: %%(prog)s help %s -> Provides help for command %s" % (cmd_inst.name, cmd_inst.name)

        parser = argparse.ArgumentParser(usage=usage)
        parser.add_argument('-c', '--config', metavar='CONFIG_FILE', dest='conf_file',
            default=DEFAULT_CONFIG_FILE,
            help="Configuration File, - for stdin. Ignored if -C is used. (Default is %s)" % (DEFAULT_CONFIG_FILE))
        parser.add_argument('-C', '--skipconfig', dest='skip_conf_file', action='store_true',
            help="Do NOT use any configuration file")
        parser.add_argument('-d', '--debug', dest='debug', action='store_true',
            help="Set logging to debug level")
        parser.add_argument('-v', '--verbose', dest='verbose', action='store_true', help="Verbose output")
        parser.add_argument('-q', '--quiet', dest='quiet', action='store_true',
            help="Silent output (except for unrecoverable errors)")
        parser.add_argument('--debugmods', metavar='MOD_NAME1,[MOD_NAME2,[...]]', dest='debug_mods',
            default='',
            help="Comma-separated list of modules to debug, e.g. kwtools.kwlib.kwapi")
        parser.add_argument('args', nargs='*', help=argparse.SUPPRESS)

        for group_name, group_options in self.option_groups.items():
            group = parser.add_argument_group(group_name)
            for option in group_options:
                # None keeps values from the config file unless the flag is given
                group.add_argument(*option.flags, dest=option.var_name, metavar=option.meta_var,
                    default=None, help=option.help_title)
        self.parser = parser

    def parse_args(self, cmd_inst):
        if self.call_src == 'shell':
            return self.parse_shell_args(cmd_inst)
        return self.parse_func_args(cmd_inst)

    def _check_mandatory_options(self):
        for option in self.options():
            if self[option.var_name] is None:
                raise UsageError("Missing value for option '%s'" % (option.var_name))

    def parse_func_args(self, cmd_inst):
        self['conf_file'] = None
        for key, val in self.call_options.items():
            self[key] = val
        self._check_mandatory_options()
        return True

    def _apply_log_levels(self, opts):
        if opts.quiet:
            self['log_level'] = logging.CRITICAL
        if opts.verbose:
            self['log_level'] = logging.INFO
        if opts.debug:
            self['log_level'] = logging.DEBUG
        if opts.debug_mods:
            self['debug_mods'] = opts.debug_mods
        if isinstance(self['debug_mods'], str):
            self['debug_mods'] = [x.strip() for x in self['debug_mods'].split(',') if x.strip()]

        log_mgr.mods.set_all_level(self['log_level'])
        for modname in self['debug_mods']:
            try:
                log_mgr.mods.set_level(modname, logging.DEBUG)
            except KeyError:
                raise UsageError("Unknown module for debugging: %s" % (modname))

    def parse_shell_args(self, cmd_inst):
        if self.parser is None:
            self.prepare_parser(cmd_inst)

        try:
            opts = self.parser.parse_args(self.args)
        except SystemExit as err:
            if not err.code:
                # -h/--help printed the usage
                return False
            raise UsageError("Invalid options specified.")

        self['conf_file'] = None if opts.skip_conf_file else opts.conf_file
        self.parse_config_file(self['conf_file'])

        self.args = opts.args
        self._apply_log_levels(opts)

        for option in self.options():
            val = getattr(opts, option.var_name)
            if val is not None:
                self[option.var_name] = val

        self._check_mandatory_options()
        return True
