import json
import urllib.parse

from kwtools.kwlib.testlib.response_generator import ResponseGenerator


class KlocworkResponseGenerator(ResponseGenerator):
    """
    Klocwork web API: form-encoded POSTs to review/api, answered with one
    JSON object per line.

    Flags for post_api: '401', '500', 'badjson'
    """

    def __init__(self, user, ltoken, project_names=None, test_dir=None):
        self.user = user
        self.ltoken = ltoken
        self.project_names = project_names or []
        self.requests = []
        rest_api_targets = {
            'review/api$': 'post_api',
        }
        super(KlocworkResponseGenerator, self).__init__(rest_api_targets, ['project'], test_dir)

    def init_with_resources(self):
        for index, name in enumerate(self.project_names):
            self.generator_add_resource('project', resource_data={'id': 'project_%d' % (index + 1), 'name': name})

    @staticmethod
    def decode_data(data):
        if isinstance(data, bytes):
            data = data.decode('utf-8')
        return dict((key, val[0]) for key, val in urllib.parse.parse_qs(data or '').items())

    @staticmethod
    def encode_response(response):
        if isinstance(response, str):
            return response
        return ''.join('%s\n' % json.dumps(item) for item in response)

    def post_api(self, target, flag, data, method):
        self.requests.append(data)
        if method != 'POST':
            self.raise_error(400, 'Only POST is supported')
        if flag == '401' or data.get('user') != self.user or data.get('ltoken') != self.ltoken:
            self.raise_error(401)
        if flag == '500':
            self.raise_error(500)

        action = data.get('action')
        if action != 'projects':
            self.raise_error(400, 'Unknown action %s' % action)
        if flag == 'badjson':
            return 'this is not json\n'
        return self.generator_get_all_resource('project')
