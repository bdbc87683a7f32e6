import os

from kwtools.kwlib.cmd import BaseCommand
from kwtools.kwlib.kwapi import KlocworkAPI
from kwtools.kwlib import envvars


class Command(BaseCommand):
    help = 'Lists the projects on a Klocwork server.'
    conf_syntax = '[project_regexp]'
    conf_help = 'project_regexp: [optional] Only list projects matching this regular expression'

    def configure(self):
        self.api = KlocworkAPI(self.config)

    def handle(self):
        if not self.config['kw_url']:
            self.config['kw_url'] = os.environ.get(envvars.KLOCWORK_URL, '')

        if self.args:
            names = self.api.match_projects(self.args[0])
        else:
            names = [project['name'] for project in self.api.get_projects()]

        for name in names:
            self.emit.info(name)
        self.emit.queue(projects=names)
        return True
