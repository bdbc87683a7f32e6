from mock import patch


class MockRequest(object):
    """ Mock of the response handle returned by the opener """
    def __init__(self, req, response_generator, flags):
        self.method = req.get_method()
        self.data = req.data
        self.host = req.host
        self.selector = req.selector
        self.headers = req.header_items()

        target = self.selector.lstrip('/')
        self.code, self.headers, self.response = response_generator.get_response(
            target, flags, self.data, self.method, self.headers)
        self.response = self.response.encode('utf-8')

    def read(self):
        response = self.response
        self.response = b''

        return response

    def close(self):
        pass


class MockOpener(object):
    """ Mock http_req.get_opener """
    def __init__(self, mock_response, method, server, proxy, debuglevel):
        self.mock_response = mock_response
        self.method = method
        self.server = server
        self.proxy = proxy
        self.debuglevel = debuglevel

    def open(self, req):
        self.mock_response.opened.append(req)
        return MockRequest(req, self.mock_response.response_generator, self.mock_response.response_flags)


class MockResponse(object):
    def __init__(self):
        self.response_generator = None
        self.response_flags = {}
        self.call_api_patch = None
        self.opened = []

    def initialize(self, response_generator):
        self.response_generator = response_generator
        self.opened = []
        self.call_api_patch = patch('kwtools.kwlib.http_req.get_opener', self.mock_get_opener)
        self.call_api_patch.start()

    def mock_get_opener(self, method, server, proxy=None, debuglevel=0):
        return MockOpener(self, method, server, proxy, debuglevel)

    def set_response_flags(self, _response_flags):
        if type(_response_flags) != dict:
            raise ValueError('Bad mock flag')
        self.response_flags = _response_flags

    def teardown(self):
        if self.response_generator is not None:
            self.response_generator.generator_clear_resources()
        self.set_response_flags({})

        if self.call_api_patch is not None:
            self.call_api_patch.stop()
            self.call_api_patch = None


MOCK_KW_RESPONSE = MockResponse()
