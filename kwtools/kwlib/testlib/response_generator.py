import io
import json
import os
import re
from urllib.error import HTTPError

from kwtools.kwlib.commons import get_directory_of_current_module

RESPONSE_HEADERS = [('Server', 'Mock')]

ERROR_MESSAGES = {
    400: 'Invalid parameters',
    401: 'Authentication failed',
    403: 'No permission',
    404: 'Not found',
    500: 'Server error',
}


class ResponseGenerator(object):
    """
    Base class of the fake servers used in the unit tests.

    rest_api_targets maps a regular expression of the request path to the
    name of the method producing the response. The method is called as
    method(target, flag, data, http_method), where flag is the value the
    test set for that method name with MockResponse.set_response_flags.

    Resources are stored per type; each type has a JSON template in
    <test_dir>/response/<type>.json that stored values are merged into.
    """

    def __init__(self, rest_api_targets, resource_types, test_dir=None):
        self.target = None
        self.test_dir = test_dir or get_directory_of_current_module(self)
        self.rest_api_targets = rest_api_targets
        self.resources = dict((resource_type, {}) for resource_type in resource_types)
        self.init_with_resources()

    def init_with_resources(self):
        pass

    @staticmethod
    def encode_response(response):
        return json.dumps(response if response is not None else {})

    @staticmethod
    def decode_data(data):
        try:
            return json.loads(data)
        except (TypeError, ValueError):
            return data

    def get_response(self, target, flags, data, method, headers=None):
        """
        Returns (status, headers, body) for a request, or raises HTTPError
        """
        self.target = target
        data = self.decode_data(data)

        for api_target, func_name in self.rest_api_targets.items():
            if re.match(api_target, target):
                func = getattr(self, func_name)
                response = func(target, flags.get(func_name), data, method)
                return 200, RESPONSE_HEADERS, self.encode_response(response)
        self.raise_error(404)

    def raise_error(self, error_code, message=None):
        if message is None:
            message = ERROR_MESSAGES.get(error_code, 'Unknown error')
        body = json.dumps({'status': error_code, 'message': message}).encode('utf-8')
        raise HTTPError(self.target, error_code, message, {}, io.BytesIO(body))

    #
    # Resources
    #
    def _get_store(self, resource_type):
        if resource_type not in self.resources:
            self.raise_error(500, 'Invalid resource type %s' % resource_type)
        return self.resources[resource_type]

    def generator_add_resource(self, resource_type, _id=None, resource_data=None):
        store = self._get_store(resource_type)
        _id = str(len(store) if _id is None else _id)
        store.setdefault(_id, resource_data or {})
        return _id

    def generator_get_all_resource(self, resource_type):
        return [self.generate_resource_from_template(resource_type, data)
            for data in self._get_store(resource_type).values()]

    def generator_clear_resources(self, full_clear=False):
        """
        Empties every store; unless full_clear, the initial resources are added back
        """
        for resource_type in self.resources:
            self.resources[resource_type] = {}
        if not full_clear:
            self.init_with_resources()

    def get_json_from_file(self, resource_type):
        path = os.path.join(self.test_dir, 'response', '%s.json' % (resource_type))
        with open(path) as template_file:
            return json.load(template_file)

    def generate_resource_from_template(self, resource_type, resource_data):
        self._get_store(resource_type)
        resource = self.get_json_from_file(resource_type)
        resource.update(resource_data)
        return resource
