import base64
import http.client
import ssl
import urllib.error
import urllib.parse

from kwtools.kwlib import http_req
from kwtools.kwlib.commons import json, Error, UsageError
from kwtools.kwlib import log_mgr

logger = log_mgr.mods.add_mod(__name__)

URLRequest = http_req.ExtendedMethodRequest

AUTH_MODES = ['basic', 'none']

# (option name, help, default), formatted with the prefix and name of the connector
CONF_OPTS = [
    ['%(prefix)s_url', 'URL of the %(name)s server, e.g. http://host:8080', ''],
    ['%(prefix)s_user', 'Username for %(name)s', ''],
    ['%(prefix)s_pass', 'Password for %(name)s', ''],
]


class APIError(Error):
    pass


class APIHTTPError(APIError):
    def __init__(self, code, msg):
        super(APIHTTPError, self).__init__(msg)
        self.code = code

    def __str__(self):
        return 'HTTP Error %s. Explanation returned: %s' % (self.code, Error.__str__(self).strip())


class APICallError(APIHTTPError):
    pass


class APIAuthError(APIError):
    def __init__(self, msg='Incorrect Credentials'):
        super(APIAuthError, self).__init__(msg)


class ServerError(APIError):
    """
    The server could not be reached (no HTTP response)
    """
    pass


class APIFormatError(APIError):
    """
    The response body could not be decoded
    """
    pass


class RESTBase(object):
    """
    Client of a REST-style API, configured through <prefix>_url, <prefix>_user
    and <prefix>_pass options.

    auth_mode 'basic' sends user and password as HTTP Basic Auth, 'none'
    sends no Authorization header (subclasses carry the credentials in the
    payload). Subclasses adapt the wire format by overriding
    encode_post_args, set_content_type, parse_response and parse_error.
    """
    URLRequest = URLRequest

    APIError = APIError
    APIHTTPError = APIHTTPError
    APICallError = APICallError
    APIAuthError = APIAuthError
    ServerError = ServerError
    APIFormatError = APIFormatError

    def __init__(self, conf_prefix, conf_name, config, base_path=None, extra_conf_opts=None):
        self.config = config
        self.conf_prefix = conf_prefix
        self.conf_name = conf_name
        self.base_path = base_path
        self.opener = None
        self.server = None
        self.base_uri = None
        self._auth_mode = 'basic'
        self._post_init_done = False
        self._register_options(CONF_OPTS + (extra_conf_opts or []))

    def _get_conf_name(self, name):
        return '%s_%s' % (self.conf_prefix, name)

    def _get_conf(self, name):
        return self.config[self._get_conf_name(name)]

    def _register_options(self, conf_opts):
        names = {'prefix': self.conf_prefix, 'name': self.conf_name}
        for var_name, desc, default in conf_opts:
            self.config.add_custom_option(var_name % names, desc % names, default=default,
                group_name='%s Connector' % (self.conf_name))

    def set_auth_mode(self, auth_mode):
        if auth_mode not in AUTH_MODES:
            raise UsageError('Invalid auth mode %s. Expected one of: %s' % (auth_mode, ', '.join(AUTH_MODES)))
        self._auth_mode = auth_mode

    def split_url(self):
        """
        Returns (scheme, server) for the configured URL, where server keeps any path prefix
        """
        url = self._get_conf('url')
        if not url:
            raise UsageError('Missing Configuration %s' % self._get_conf_name('url'))
        parts = urllib.parse.urlsplit(url.strip())
        if parts.scheme not in ['http', 'https'] or not parts.netloc:
            raise UsageError('Invalid %s URL: %s' % (self.conf_name, url))
        path = parts.path.strip('/')
        if path:
            return parts.scheme, '%s/%s' % (parts.netloc, path)
        return parts.scheme, parts.netloc

    def post_conf_init(self):
        """
        Creates the opener once the configuration is complete (called by the first API call)
        """
        if self._post_init_done:
            return

        scheme, server = self.split_url()
        debuglevel = 1 if __name__ in self.config['debug_mods'] else 0
        self.opener = http_req.get_opener(scheme, server, debuglevel=debuglevel)
        self.server = self.opener.server
        self.base_uri = '%s://%s' % (scheme, self.server)
        if self.base_path:
            self.base_uri = '%s/%s' % (self.base_uri, self.base_path)

        self._post_init_done = True

    def encode_post_args(self, args):
        return json.dumps(args).encode('utf-8')

    def set_content_type(self, req, method):
        if method != URLRequest.GET:
            req.add_header('Content-Type', 'application/json')

    def parse_response(self, result):
        try:
            return json.loads(result)
        except ValueError:
            raise APIFormatError('Unable to process JSON data: %s' % result[:200])

    def parse_error(self, result):
        return json.loads(result)['message']

    def build_request(self, target, method, args, auth_mode):
        req_url = '%s/%s' % (self.base_uri, target)
        data = None
        if method == URLRequest.GET:
            if args:
                req_url = '%s?%s' % (req_url, urllib.parse.urlencode(args))
        else:
            data = self.encode_post_args(args)

        req = URLRequest(req_url, data=data, method=method)
        self.set_content_type(req, method)
        if auth_mode == 'basic':
            credentials = '%s:%s' % (self._get_conf('user'), self._get_conf('pass'))
            req.add_header('Authorization', 'Basic %s' % base64.b64encode(credentials.encode('utf-8')).decode('ascii'))
        elif auth_mode != 'none':
            raise UsageError('Unknown Authentication mode "%s".' % (auth_mode))
        return req

    def call_api(self, target, method=URLRequest.GET, args=None, auth_mode=None):
        """
        Calls target (path below base_uri) and returns the parsed response.
        POST/PUT args are encoded with encode_post_args, GET args go to the
        query string.
        """
        self.post_conf_init()

        args = args or {}
        logger.info('Calling %s API: %s %s' % (self.conf_name, method, target))
        logger.debug(' + Args: %s' % ((repr(args)[:200]) + (repr(args)[200:] and '...')))

        req = self.build_request(target, method, args, auth_mode or self._auth_mode)
        handle = self._open(req)
        try:
            result = self._read_body(handle)
        finally:
            handle.close()
        return self.parse_response(result)

    def _open(self, req):
        try:
            return self.opener.open(req)
        except urllib.error.HTTPError as err:
            self._raise_http_error(err)
        except urllib.error.URLError as err:
            if isinstance(err.reason, ssl.SSLError):
                raise ServerError('Unable to verify SSL certificate for host: %s' % (self.server))
            raise ServerError('Invalid server or server unreachable: %s' % (self.server))
        except http.client.InvalidURL as err:
            raise UsageError('Invalid URL. Reason %s' % (err))

    @staticmethod
    def _read_body(handle):
        chunks = []
        while True:
            chunk = handle.read()
            if not chunk:
                break
            chunks.append(chunk)
        return b''.join(chunks).decode('utf-8')

    def _raise_http_error(self, err):
        try:
            err_msg = err.read().decode('utf-8', 'replace')
            logger.info('Error calling %s API. Raw error: %s' % (self.conf_name, repr(err_msg)[:200]))
        except (IOError, AttributeError):
            err_msg = 'Unknown Error'
        try:
            err_msg = self.parse_error(err_msg)
        except (ValueError, KeyError, TypeError):
            # Not the usual error body, keep it as it is
            pass
        if err.code == 401:
            raise APIAuthError('Invalid Credentials for %s' % self.conf_name)
        raise APICallError(err.code, str(err_msg)[:255])
