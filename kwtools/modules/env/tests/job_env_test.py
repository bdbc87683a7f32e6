import os
import shutil
import tempfile
import unittest

from mock import patch

import kwtools
from kwtools.kwlib.commons import UsageError
from kwtools.kwlib.testlib.conf_helper import make_config, EmitRecorder
from kwtools.kwlib.testlib.kw_response_generator import KlocworkResponseGenerator
from kwtools.kwlib.testlib.mock_response import MOCK_KW_RESPONSE
from kwtools.modules.env.job_env import KlocworkJobEnvironment, NONE_VALUE, format_env

KW_URL = 'http://kw.example.com:8080'

SERVER_CONFIGS = {
    'production': {
        'name': 'production',
        'url': KW_URL,
        'specific_license': 'false',
    },
    'licensed': {
        'name': 'licensed',
        'url': KW_URL,
        'specific_license': 'true',
        'license_host': 'lic.example.com',
        'license_port': '27001',
    },
    'nourl': {
        'name': 'nourl',
        'url': '',
    },
}

INSTALL_CONFIGS = {
    'kw2023': {
        'name': 'kw2023',
        'paths': '/opt/klocwork/bin\n/opt/klocwork/tools\n',
    },
}


class TestKlocworkJobEnvironment(unittest.TestCase):
    def setUp(self):
        self.recorder = EmitRecorder()
        self.config = make_config('env', self.recorder)
        self.env = {'PATH': '/usr/bin', 'HOME': '/home/jenkins'}
        self.job_env = KlocworkJobEnvironment(self.config, self.env)
        self.config['server_configs'] = SERVER_CONFIGS
        self.config['install_configs'] = INSTALL_CONFIGS
        self.config['license_host'] = 'global.example.com'
        self.config['license_port'] = '27000'

    def test_full_environment(self):
        self.config['server_config'] = 'production'
        self.config['install_config'] = 'kw2023'
        self.config['server_project'] = 'Alpha'
        self.config['kw_ltoken'] = '$HOME/.klocwork/ltoken'

        job_env = self.job_env.build()
        self.assertEqual(list(job_env.items()), [
            ('KLOCWORK_URL', KW_URL),
            ('KLOCWORK_LICENSE_HOST', 'global.example.com'),
            ('KLOCWORK_LICENSE_PORT', '27000'),
            ('KLOCWORK_PROJECT', 'Alpha'),
            ('PATH', os.pathsep.join(['/opt/klocwork/bin', '/opt/klocwork/tools', '/usr/bin'])),
            ('KLOCWORK_LTOKEN', '/home/jenkins/.klocwork/ltoken'),
        ])
        self.assertTrue('Using Global License Settings 27000@global.example.com' in self.recorder.messages())

    def test_server_specific_license(self):
        self.config['server_config'] = 'licensed'
        job_env = self.job_env.build()
        self.assertEqual(job_env['KLOCWORK_LICENSE_HOST'], 'lic.example.com')
        self.assertEqual(job_env['KLOCWORK_LICENSE_PORT'], '27001')

    def test_no_server_selected(self):
        for name in ['', NONE_VALUE]:
            self.config['server_config'] = name
            job_env = self.job_env.build()
            self.assertFalse('KLOCWORK_URL' in job_env)
            self.assertFalse('KLOCWORK_PROJECT' in job_env)
            self.assertFalse('PATH' in job_env)
            self.assertEqual(job_env['KLOCWORK_LICENSE_HOST'], 'global.example.com')

    def test_server_without_url(self):
        self.config['server_config'] = 'nourl'
        self.assertFalse('KLOCWORK_URL' in self.job_env.build())

    def test_unknown_server_config(self):
        self.config['server_config'] = 'staging'
        self.assertRaises(UsageError, self.job_env.build)

    def test_unknown_install_config(self):
        self.config['install_config'] = 'kw2019'
        self.assertRaises(UsageError, self.job_env.build)

    def test_invalid_license_port(self):
        self.config['license_port'] = 'twenty'
        self.assertRaises(UsageError, self.job_env.build)

    def test_invalid_create_project_flag(self):
        self.config['create_project'] = 'sometimes'
        self.assertRaises(UsageError, self.job_env.build)

    def test_write_env_file(self):
        tmp_dir = tempfile.mkdtemp()
        try:
            env_file = os.path.join(tmp_dir, 'kwenv.sh')
            self.job_env.write({'KLOCWORK_PROJECT': 'My Project'}, env_file, 'shell')
            with open(env_file) as written:
                self.assertEqual(written.read(), "export KLOCWORK_PROJECT='My Project'\n")
        finally:
            shutil.rmtree(tmp_dir)


class TestFormatEnv(unittest.TestCase):
    def test_formats(self):
        job_env = {'KLOCWORK_LTOKEN': 'C:\\Users\\jenkins\\ltoken'}
        self.assertEqual(format_env(job_env, 'shell'), "export KLOCWORK_LTOKEN='C:\\Users\\jenkins\\ltoken'\n")
        self.assertEqual(format_env(job_env, 'batch'), 'set "KLOCWORK_LTOKEN=C:\\Users\\jenkins\\ltoken"\n')
        self.assertEqual(format_env(job_env, 'properties'), 'KLOCWORK_LTOKEN=C:\\\\Users\\\\jenkins\\\\ltoken\n')

    def test_unknown_format(self):
        self.assertRaises(UsageError, format_env, {'KLOCWORK_PROJECT': 'Alpha'}, 'xml')


class TestEnsureProject(unittest.TestCase):
    def setUp(self):
        MOCK_KW_RESPONSE.initialize(KlocworkResponseGenerator('jenkins', 'abc123', ['Alpha']))
        self.config = make_config('env')
        self.job_env = KlocworkJobEnvironment(self.config, {'PATH': '/usr/bin'})
        self.config['kw_user'] = 'jenkins'
        self.config['kw_pass'] = 'abc123'

    def tearDown(self):
        MOCK_KW_RESPONSE.teardown()

    @patch('kwtools.modules.env.job_env.execute_checked')
    def test_existing_project(self, mock_execute):
        self.config['server_project'] = 'Alpha'
        self.assertFalse(self.job_env.ensure_project({'KLOCWORK_URL': KW_URL}))
        self.assertFalse(mock_execute.called)

    @patch('kwtools.modules.env.job_env.execute_checked')
    def test_create_project(self, mock_execute):
        self.config['server_project'] = 'Beta'
        job_env = {'KLOCWORK_URL': KW_URL, 'PATH': '/opt/klocwork/bin'}
        self.assertTrue(self.job_env.ensure_project(job_env, cwd='/tmp'))

        call_args, call_kwargs = mock_execute.call_args
        self.assertEqual(call_args[0].to_list(), ['kwadmin', '--url', KW_URL, 'create-project', 'Beta'])
        self.assertEqual(call_kwargs['env']['PATH'], '/opt/klocwork/bin')
        self.assertEqual(call_kwargs['cwd'], '/tmp')

    def test_create_project_requires_url(self):
        self.config['server_project'] = 'Beta'
        self.assertRaises(UsageError, self.job_env.ensure_project, {})

    def test_create_project_requires_name(self):
        self.assertRaises(UsageError, self.job_env.ensure_project, {'KLOCWORK_URL': KW_URL})


class TestEnvCommand(unittest.TestCase):
    def setUp(self):
        self.tmp_dir = tempfile.mkdtemp()
        self.env_file = os.path.join(self.tmp_dir, 'kwenv.properties')

    def tearDown(self):
        shutil.rmtree(self.tmp_dir)

    def test_env_file_written(self):
        recorder = EmitRecorder()
        options = {
            'server_configs': SERVER_CONFIGS,
            'server_config': 'production',
            'server_project': 'Alpha',
            'env_file': self.env_file,
            'env_format': 'properties',
        }
        self.assertTrue(kwtools.call('env', options, call_back=recorder))

        with open(self.env_file) as written:
            lines = written.read().splitlines()
        self.assertEqual(lines[0], 'KLOCWORK_URL=%s' % KW_URL)
        self.assertTrue('KLOCWORK_PROJECT=Alpha' in lines)

        closing = recorder.events[-1]
        self.assertEqual(closing.ev_type, 'close')
        self.assertTrue(closing.items['status'])
        self.assertEqual(closing.items['job_env']['KLOCWORK_PROJECT'], 'Alpha')

    def test_unknown_server_fails(self):
        recorder = EmitRecorder()
        options = {'server_config': 'staging', 'env_file': self.env_file}
        self.assertFalse(kwtools.call('env', options, call_back=recorder))
        self.assertFalse(recorder.events[-1].items['status'])
        self.assertFalse(os.path.exists(self.env_file))
