import sys

from kwtools.kwlib.cmd import BaseCommand
from kwtools.kwlib import commons


class Command(BaseCommand):
    name = 'help'
    help = 'Prints the list of available commands, or the options of one command.'
    conf_syntax = '[command_name]'
    conf_help = 'command_name: [optional] Show the options of this command\n'\
        '  (omit to see a list of available commands)'

    def configure(self):
        self.help_cmd = None

    def parse_args(self):
        # help takes a command name, not the options of the command
        if '-h' in self.args or '--help' in self.args:
            return self.config.parse_args(self)
        if self.args:
            self.help_cmd = self.args[0]
            if self.help_cmd not in self.config.command_list:
                raise commons.UsageError('Unable to find command %s' % (self.help_cmd))
        return True

    def print_command_list(self):
        prog = sys.argv[0]
        lines = ['Available commands are:', '']
        for cmd_name in sorted(self.config.command_list):
            lines.append('  %s%s' % (cmd_name.ljust(20), self.config.command_list[cmd_name].help))
        lines += ['', 'Hint: %s help COMMAND -> See the options of a command' % (prog), '']
        print('\n'.join(lines))

    def print_command_options(self):
        cmd_config = self.config.copy(self.help_cmd)
        cmd_inst = self.config.command_list[self.help_cmd](cmd_config, [])
        cmd_inst.configure()
        cmd_config.prepare_parser(cmd_inst)
        cmd_config.parser.print_help()

    def handle(self):
        if self.help_cmd:
            self.print_command_options()
        else:
            self.print_command_list()
        return True
