import shlex
import subprocess
import sys

from kwtools.kwlib.commons import Error, UsageError
from kwtools.kwlib import log_mgr

logger = log_mgr.mods.add_mod(__name__)


class LauncherError(Error):
    pass


class ArgumentList(object):
    """
    Command line of an external tool, one list item per argument
    """

    def __init__(self, *args):
        self.args = []
        self.add(*args)

    def add(self, *args):
        for arg in args:
            self.args.append(str(arg))
        return self

    def add_tokenized(self, text):
        """
        Splits text with shell quoting rules and adds every token
        """
        if not text:
            return self
        try:
            self.args.extend(shlex.split(text))
        except ValueError as err:
            raise UsageError('Unable to tokenize arguments "%s": %s' % (text, err))
        return self

    def to_list(self):
        return list(self.args)

    def __iter__(self):
        return iter(self.args)

    def __len__(self):
        return len(self.args)

    def __str__(self):
        return ' '.join(shlex.quote(arg) for arg in self.args)


def _write_stdout(line):
    sys.stdout.write(line)
    sys.stdout.flush()


def execute(args, env=None, cwd=None, output=_write_stdout):
    """
    Runs the command and passes every line it prints to output.
    Returns the exit code.
    """
    logger.info('Executing: %s' % (args))
    try:
        proc = subprocess.Popen(args.to_list(), stdout=subprocess.PIPE, stderr=subprocess.STDOUT,
            env=env, cwd=cwd, universal_newlines=True)
    except OSError as err:
        raise LauncherError('Unable to run %s: %s' % (args.to_list()[0], err.strerror))

    for line in proc.stdout:
        output(line)
    proc.stdout.close()
    ret_code = proc.wait()
    logger.debug('%s exited with code %d' % (args.to_list()[0], ret_code))
    return ret_code


def execute_checked(args, env=None, cwd=None, output=_write_stdout):
    ret_code = execute(args, env, cwd, output)
    if ret_code != 0:
        raise LauncherError('Command "%s" failed with exit code %d' % (args, ret_code))
    return ret_code
