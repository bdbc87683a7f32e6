import os
import shutil
import tempfile
import unittest
import urllib.parse

from kwtools.kwlib.commons import UsageError
from kwtools.kwlib.kwapi import KlocworkAPI, KlocworkError
from kwtools.kwlib.ltoken import LtokenError
from kwtools.kwlib.testlib.conf_helper import make_config
from kwtools.kwlib.testlib.kw_response_generator import KlocworkResponseGenerator
from kwtools.kwlib.testlib.mock_response import MOCK_KW_RESPONSE

KW_URL = 'http://kw.example.com:8080'
KW_USER = 'jenkins'
KW_LTOKEN = '3a1fd0c8e42b7'
PROJECT_NAMES = ['Alpha', 'Beta', 'alpha-tests']


class TestKlocworkAPI(unittest.TestCase):
    def setUp(self):
        self.response_generator = KlocworkResponseGenerator(KW_USER, KW_LTOKEN, PROJECT_NAMES)
        MOCK_KW_RESPONSE.initialize(self.response_generator)
        self.config = make_config('list_projects')
        self.api = KlocworkAPI(self.config, env={})
        self.config['kw_url'] = KW_URL
        self.config['kw_user'] = KW_USER
        self.config['kw_pass'] = KW_LTOKEN

    def tearDown(self):
        MOCK_KW_RESPONSE.teardown()

    def test_get_projects(self):
        projects = self.api.get_projects()
        self.assertEqual([project['name'] for project in projects], PROJECT_NAMES)

    def test_request_is_form_encoded(self):
        self.api.get_projects()
        request = MOCK_KW_RESPONSE.opened[0]
        self.assertEqual(request.full_url, '%s/review/api' % KW_URL)
        self.assertEqual(request.get_method(), 'POST')
        self.assertEqual(request.get_header('Content-type'), 'application/x-www-form-urlencoded')
        form = urllib.parse.parse_qs(request.data.decode('utf-8'))
        self.assertEqual(form, {'user': [KW_USER], 'ltoken': [KW_LTOKEN], 'action': ['projects']})

    def test_no_authorization_header(self):
        self.api.get_projects()
        self.assertFalse(MOCK_KW_RESPONSE.opened[0].has_header('Authorization'))

    def test_project_exists(self):
        self.assertTrue(self.api.project_exists('Beta'))
        self.assertFalse(self.api.project_exists('Gamma'))
        self.assertFalse(self.api.project_exists('beta'))

    def test_match_projects(self):
        self.assertEqual(self.api.match_projects('.*'), PROJECT_NAMES)
        self.assertEqual(self.api.match_projects('^Alpha$'), ['Alpha'])
        self.assertEqual(self.api.match_projects('alpha'), ['alpha-tests'])
        self.assertEqual(self.api.match_projects('(?i)alpha'), ['Alpha', 'alpha-tests'])

    def test_match_projects_no_match(self):
        try:
            self.api.match_projects('^Gamma')
        except KlocworkError as err:
            self.assertTrue('Could not match any projects on server %s with regular expression "^Gamma"' % KW_URL
                in str(err))
        else:
            self.fail('Expected KlocworkError')

    def test_match_projects_invalid_regexp(self):
        self.assertRaises(UsageError, self.api.match_projects, '[unclosed')

    def test_invalid_credentials(self):
        self.config['kw_pass'] = 'wrong'
        self.assertRaises(KlocworkError, self.api.get_projects)

    def test_server_error(self):
        MOCK_KW_RESPONSE.set_response_flags({'post_api': '500'})
        try:
            self.api.get_projects()
        except KlocworkError as err:
            self.assertTrue('Failed to connect to the Klocwork web API' in str(err))
            self.assertTrue('HTTP Error 500' in str(err))
        else:
            self.fail('Expected KlocworkError')

    def test_malformed_response(self):
        MOCK_KW_RESPONSE.set_response_flags({'post_api': 'badjson'})
        self.assertRaises(KlocworkError, self.api.get_projects)

    def test_missing_url(self):
        self.config['kw_url'] = ''
        self.assertRaises(UsageError, self.api.get_projects)


class TestKlocworkAPILtoken(unittest.TestCase):
    def setUp(self):
        self.tmp_dir = tempfile.mkdtemp()
        self.ltoken_path = os.path.join(self.tmp_dir, 'ltoken')
        with open(self.ltoken_path, 'w') as ltoken_file:
            ltoken_file.write('other.example.com;8080;someone;ffff\n')
            ltoken_file.write('kw.example.com;8080;%s;%s\n' % (KW_USER, KW_LTOKEN))
        MOCK_KW_RESPONSE.initialize(KlocworkResponseGenerator(KW_USER, KW_LTOKEN, PROJECT_NAMES))
        self.config = make_config('list_projects')

    def tearDown(self):
        MOCK_KW_RESPONSE.teardown()
        shutil.rmtree(self.tmp_dir)

    def test_credentials_from_ltoken_option(self):
        api = KlocworkAPI(self.config, env={})
        self.config['kw_url'] = KW_URL
        self.config['kw_ltoken'] = self.ltoken_path
        self.assertTrue(api.project_exists('Alpha'))
        self.assertEqual(self.config['kw_user'], KW_USER)
        self.assertEqual(self.config['kw_pass'], KW_LTOKEN)

    def test_credentials_from_environment(self):
        api = KlocworkAPI(self.config, env={'KLOCWORK_LTOKEN': self.ltoken_path})
        self.config['kw_url'] = KW_URL
        self.assertTrue(api.project_exists('Alpha'))

    def test_no_entry_for_server(self):
        api = KlocworkAPI(self.config, env={'KLOCWORK_LTOKEN': self.ltoken_path})
        self.config['kw_url'] = 'http://kw.example.com:9090'
        self.assertRaises(LtokenError, api.get_projects)
