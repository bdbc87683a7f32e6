# Klocwork job environment: server URL, licence, project, tool paths and ltoken
# for the Klocwork command line tools run by later build steps.

import collections
import os
import shlex

from kwtools.kwlib.commons import UsageError, is_windows
from kwtools.kwlib.kwapi import KlocworkAPI
from kwtools.kwlib.launcher import ArgumentList, execute_checked
from kwtools.kwlib import envvars

from kwtools.kwlib import log_mgr
logger = log_mgr.mods.add_mod(__name__)

NONE_VALUE = '-- none --'

ENV_FORMATS = ['shell', 'batch', 'properties']
DEFAULT_ENV_FILE = 'kwenv.sh'


def format_env(job_env, env_format):
    lines = []
    for name, value in job_env.items():
        if env_format == 'shell':
            lines.append('export %s=%s' % (name, shlex.quote(value)))
        elif env_format == 'batch':
            lines.append('set "%s=%s"' % (name, value))
        elif env_format == 'properties':
            lines.append('%s=%s' % (name, value.replace('\\', '\\\\')))
        else:
            raise UsageError('Unknown environment format %s. Expected one of: %s' %
                (env_format, ', '.join(ENV_FORMATS)))
    return '\n'.join(lines) + '\n'


class KlocworkJobEnvironment(object):
    server_config = 'server_config'
    install_config = 'install_config'
    server_project = 'server_project'
    create_project = 'create_project'
    license_host = 'license_host'
    license_port = 'license_port'

    def __init__(self, config, env=None):
        self.config = config
        self.emit = config.emit
        if env is None:
            env = os.environ
        self.initial_env = env

        config.add_custom_option(self.server_config, 'Name of the [server:NAME] configuration to use',
            default='', group_name='Klocwork Environment')
        config.add_custom_option(self.install_config, 'Name of the [install:NAME] configuration to use',
            default='', group_name='Klocwork Environment')
        config.add_custom_option(self.server_project, 'Klocwork project on the server',
            default='', group_name='Klocwork Environment')
        config.add_custom_option(self.create_project, 'Create the server project if it does not exist (True|False)',
            default='False', group_name='Klocwork Environment')
        config.add_custom_option(self.license_host, 'Global Klocwork licence host',
            default='', group_name='Klocwork Environment')
        config.add_custom_option(self.license_port, 'Global Klocwork licence port',
            default='', group_name='Klocwork Environment')

        self.api = KlocworkAPI(config, env)

    def _get_named_config(self, kind, name):
        if not name or name == NONE_VALUE:
            return None
        configs = self.config['%s_configs' % kind]
        if name not in configs:
            raise UsageError('Unknown %s configuration "%s". Available: %s' %
                (kind, name, ', '.join(sorted(configs)) or 'none'))
        return configs[name]

    def get_server_config(self):
        return self._get_named_config('server', self.config[self.server_config])

    def get_install_config(self):
        return self._get_named_config('install', self.config[self.install_config])

    def _add_license(self, job_env, host, port):
        if port and not str(port).isdigit():
            raise UsageError('Licence port must be a number, got "%s"' % (port))
        job_env[envvars.KLOCWORK_LICENSE_HOST] = host or ''
        job_env[envvars.KLOCWORK_LICENSE_PORT] = port or ''

    def _add_global_license(self, job_env):
        self.emit.info('Using Global License Settings %s@%s' %
            (self.config[self.license_port], self.config[self.license_host]))
        self._add_license(job_env, self.config[self.license_host], self.config[self.license_port])

    def build(self):
        """
        Returns the variables to add to the job environment, in order
        """
        self.config.process_boolean_config(self.create_project)
        job_env = collections.OrderedDict()
        server = self.get_server_config()
        install = self.get_install_config()

        if server is not None:
            if not server.get('url'):
                logger.warning('Server URL for configuration "%s" is empty' % (server['name']))
            else:
                self.emit.info('Adding the Klocwork Server URL %s' % (server['url']))
                job_env[envvars.KLOCWORK_URL] = server['url']
            specific = server.get('specific_license', 'false').strip().lower() in ['true', 'yes', 'on', '1']
            if specific:
                self.emit.info('Using specific License for given server %s@%s' %
                    (server.get('license_port', ''), server.get('license_host', '')))
                self._add_license(job_env, server.get('license_host'), server.get('license_port'))
            else:
                self._add_global_license(job_env)
        else:
            logger.warning('No Klocwork server selected. Klocwork cannot perform server builds '
                'or synchronisations without a server.')
            self._add_global_license(job_env)

        if not self.config[self.server_project]:
            logger.warning('No Klocwork project provided. Klocwork cannot perform server builds '
                'or synchronisations without a project.')
        else:
            job_env[envvars.KLOCWORK_PROJECT] = self.config[self.server_project]

        if install is not None:
            self.emit.info('Adding Klocwork paths. Using install "%s"' % (install['name']))
            paths = [x.strip() for x in install.get('paths', '').splitlines() if x.strip()]
            path = self.initial_env.get('PATH', '')
            job_env['PATH'] = os.pathsep.join(paths + [path])

        ltoken_path = self.config['kw_ltoken']
        if not ltoken_path:
            self.emit.info('No ltoken file specified. %s will not be set.' % (envvars.KLOCWORK_LTOKEN))
        else:
            ltoken_path = envvars.expand(ltoken_path, self.initial_env)
            self.emit.info('Detected ltoken file. Setting %s to "%s"' % (envvars.KLOCWORK_LTOKEN, ltoken_path))
            job_env[envvars.KLOCWORK_LTOKEN] = ltoken_path

        return job_env

    def merged_env(self, job_env):
        env = dict(self.initial_env)
        env.update(job_env)
        return env

    def ensure_project(self, job_env, cwd=None):
        """
        Creates the server project with kwadmin unless it already exists.
        Returns True if the project was created.
        """
        url = job_env.get(envvars.KLOCWORK_URL)
        project = self.config[self.server_project]
        if not url:
            raise UsageError('A server configuration with a URL is required to create a project')
        if not project:
            raise UsageError('Missing server_project: unable to create a project without a name')

        self.config['kw_url'] = url
        self.api.env = self.merged_env(job_env)
        if self.api.project_exists(project):
            self.emit.info('Project "%s" already exists on %s' % (project, url))
            return False

        self.emit.info('Creating project "%s" on %s' % (project, url))
        cmd = ArgumentList('kwadmin', '--url', url, 'create-project', project)
        execute_checked(cmd, env=self.merged_env(job_env), cwd=cwd)
        return True

    def write(self, job_env, file_name, env_format=None):
        if not env_format:
            env_format = 'batch' if is_windows() else 'shell'
        content = format_env(job_env, env_format)
        if file_name == '-':
            print(content, end='')
            return
        with open(file_name, 'w') as env_file:
            env_file.write(content)
        self.emit.info('Environment written to %s' % (file_name))
