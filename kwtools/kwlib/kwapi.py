import os
import re
import urllib.parse

from kwtools.kwlib.commons import Error, UsageError, json
from kwtools.kwlib import restclient
from kwtools.kwlib import ltoken
from kwtools.kwlib import log_mgr

logger = log_mgr.mods.add_mod(__name__)


class KlocworkError(Error):
    pass


class KlocworkAPI(restclient.RESTBase):
    """
    Klocwork web API (<url>/review/api).

    Every call is a form-encoded POST carrying user, ltoken and action. The
    server answers with one JSON object per line.
    """

    def __init__(self, config, env=None):
        extra_conf_opts = [
            ('%(prefix)s_ltoken', 'ltoken file holding the %(name)s credentials '
                '(default: $KLOCWORK_LTOKEN or ~/.klocwork/ltoken)', ''),
        ]
        super(KlocworkAPI, self).__init__('kw', 'Klocwork', config, 'review', extra_conf_opts)
        self.set_auth_mode('none')
        if env is None:
            env = os.environ
        self.env = env

    def post_conf_init(self):
        if self._post_init_done:
            return

        if not self._get_conf('user') or not self._get_conf('pass'):
            ltoken_path = ltoken.get_ltoken_path(self.env, self._get_conf('ltoken'))
            entry = ltoken.read_ltoken(self._get_conf('url'), ltoken_path)
            self.config['kw_user'] = entry.user
            self.config['kw_pass'] = entry.token

        super(KlocworkAPI, self).post_conf_init()

    def set_content_type(self, req, method):
        if (method != self.URLRequest.GET):
            req.add_header('Content-Type', 'application/x-www-form-urlencoded')

    def encode_post_args(self, args):
        form = {
            'user': self._get_conf('user'),
            'ltoken': self._get_conf('pass'),
        }
        form.update(args)
        return urllib.parse.urlencode(form).encode('utf-8')

    def parse_response(self, result):
        items = []
        for line in result.splitlines():
            if not line.strip():
                continue
            try:
                items.append(json.loads(line))
            except ValueError:
                raise self.APIFormatError('Unable to process JSON data: %s' % line[:200])
        return items

    def parse_error(self, result):
        return json.loads(result)['message']

    def send_request(self, action, **args):
        args['action'] = action
        return self.call_api('api', self.URLRequest.POST, args=args)

    def get_projects(self):
        """
        Returns the list of projects on the server (dicts with at least 'name')
        """
        try:
            return self.send_request('projects')
        except restclient.APIError as err:
            raise KlocworkError('Failed to connect to the Klocwork web API. Message: %s' % (err))

    def project_exists(self, name):
        for project in self.get_projects():
            if project.get('name') == name:
                return True
        return False

    def match_projects(self, project_regexp):
        """
        Returns the names of all projects containing a match for project_regexp
        """
        try:
            pattern = re.compile(project_regexp)
        except re.error as err:
            raise UsageError('Invalid project regular expression "%s": %s' % (project_regexp, err))

        names = [project['name'] for project in self.get_projects()
            if pattern.search(project.get('name', ''))]
        if not names:
            raise KlocworkError('Could not match any projects on server %s with regular expression "%s"' %
                (self._get_conf('url'), project_regexp))

        logger.info('Matched projects: %s' % (', '.join(names)))
        return names
