from kwtools.kwlib.cmd import BaseCommand

from kwtools.modules.env.job_env import KlocworkJobEnvironment, DEFAULT_ENV_FILE, ENV_FORMATS


class Command(BaseCommand):
    help = 'Prepares the environment of a Klocwork CI job.'

    def configure(self):
        self.job_env = KlocworkJobEnvironment(self.config)
        self.config.add_custom_option('env_file', 'File to write the environment to (- for stdout)', 'w',
            default=DEFAULT_ENV_FILE)
        self.config.add_custom_option('env_format', 'Format of the environment file (%s)' % '|'.join(ENV_FORMATS),
            default='')

    def handle(self):
        job_env = self.job_env.build()
        if self.config['create_project']:
            self.job_env.ensure_project(job_env)
        self.job_env.write(job_env, self.config['env_file'], self.config['env_format'])
        self.emit.queue(job_env=dict(job_env))
        return True
