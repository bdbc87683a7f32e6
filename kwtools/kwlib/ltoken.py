import collections
import os
import urllib.parse

from kwtools.kwlib.commons import Error
from kwtools.kwlib import envvars
from kwtools.kwlib import log_mgr

logger = log_mgr.mods.add_mod(__name__)

DEFAULT_LTOKEN_FILE = os.path.join('~', '.klocwork', 'ltoken')
LTOKEN_ENV_VAR = envvars.KLOCWORK_LTOKEN

LTOKEN_HOST_INDEX = 0
LTOKEN_PORT_INDEX = 1
LTOKEN_USER_INDEX = 2
LTOKEN_HASH_INDEX = 3

DEFAULT_PORTS = {
    'http': '80',
    'https': '443',
}

Ltoken = collections.namedtuple('Ltoken', ['host', 'port', 'user', 'token'])


class LtokenError(Error):
    pass


def get_ltoken_path(env=None, ltoken_path=None):
    """
    The explicit path wins, then KLOCWORK_LTOKEN, then the per-user default
    """
    if not ltoken_path and env:
        ltoken_path = env.get(LTOKEN_ENV_VAR)
    if not ltoken_path:
        ltoken_path = DEFAULT_LTOKEN_FILE
    return os.path.expanduser(ltoken_path)


def get_host_and_port(url):
    parts = urllib.parse.urlsplit(url)
    if not parts.hostname:
        raise LtokenError('Unable to determine host from Klocwork URL "%s"' % (url))
    if parts.port:
        port = str(parts.port)
    else:
        port = DEFAULT_PORTS.get(parts.scheme, '')
    return parts.hostname, port


def parse_ltoken_line(line):
    fields = line.strip().split(';')
    if len(fields) <= LTOKEN_HASH_INDEX:
        return None
    return Ltoken(fields[LTOKEN_HOST_INDEX], fields[LTOKEN_PORT_INDEX],
        fields[LTOKEN_USER_INDEX], fields[LTOKEN_HASH_INDEX])


def read_ltoken(url, ltoken_path):
    """
    Finds the ltoken entry (host;port;user;token) for the server at url
    """
    host, port = get_host_and_port(url)
    logger.debug('Looking up ltoken for %s:%s in %s' % (host, port, ltoken_path))
    try:
        with open(ltoken_path) as ltoken_file:
            lines = ltoken_file.readlines()
    except IOError as err:
        raise LtokenError('Unable to read ltoken file %s: %s' % (ltoken_path, err.strerror))

    for line in lines:
        entry = parse_ltoken_line(line)
        if entry is None:
            continue
        if entry.host == host and entry.port == port:
            return entry

    raise LtokenError('No ltoken entry for %s:%s in %s (run kwauth to log in to the server)' %
        (host, port, ltoken_path))
