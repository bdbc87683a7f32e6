# Cross-project issue synchronisation with kwxsync

import os

from kwtools.kwlib.commons import UsageError
from kwtools.kwlib.kwapi import KlocworkAPI
from kwtools.kwlib.launcher import ArgumentList, execute_checked
from kwtools.kwlib.sync_window import SyncMode, SyncWindowRequest, resolve_last_sync, FULL_SYNC
from kwtools.kwlib import build_history
from kwtools.kwlib import envvars

from kwtools.kwlib import log_mgr
logger = log_mgr.mods.add_mod(__name__)

# Issue statuses in the order kwxsync receives them
STATUS_OPTIONS = [
    ('status_analyze', 'Analyze'),
    ('status_ignore', 'Ignore'),
    ('status_not_a_problem', 'Not a Problem'),
    ('status_fix', 'Fix'),
    ('status_fix_in_next_release', 'Fix in Next Release'),
    ('status_fix_in_later_release', 'Fix in Later Release'),
    ('status_defer', 'Defer'),
    ('status_filter', 'Filter'),
]


class KlocworkXSync(object):
    last_sync_type = 'last_sync_type'
    man_sync = 'man_sync'
    builds_dir = 'builds_dir'
    build_id = 'build_id'
    project_regexp = 'project_regexp'
    dry_run = 'dry_run'
    additional_opts = 'additional_opts'

    def __init__(self, config, env=None):
        self.config = config
        self.emit = config.emit
        if env is None:
            env = os.environ
        self.env = env

        config.add_custom_option(self.last_sync_type, 'How to determine the last sync (%s)' %
            '|'.join(SyncMode.ALL), default=SyncMode.MANUAL, group_name='Cross-project Sync')
        config.add_custom_option(self.man_sync, 'Time since the last sync for manual mode, '
            'e.g. 2d3h or 03-00-0000 00:00:00', default='', group_name='Cross-project Sync')
        config.add_custom_option(self.builds_dir, 'Directory holding the build records of the job '
            '(derived from the CI environment if omitted)', default='', group_name='Cross-project Sync')
        config.add_custom_option(self.build_id, 'Number of the current build (default: $BUILD_NUMBER)',
            default='', group_name='Cross-project Sync')
        config.add_custom_option(self.project_regexp, 'Regular expression selecting the projects to sync',
            default='.*', group_name='Cross-project Sync')
        config.add_custom_option(self.dry_run, 'Only report what kwxsync would do (True|False)',
            default='False', group_name='Cross-project Sync')
        for var_name, status in STATUS_OPTIONS:
            config.add_custom_option(var_name, 'Synchronise issues with status "%s" (True|False)' % status,
                default='False', group_name='Cross-project Sync Statuses')
        config.add_custom_option(self.additional_opts, 'Additional kwxsync options (variables are expanded)',
            default='', group_name='Cross-project Sync')

        self.api = KlocworkAPI(config, env)

    def initialize(self):
        self.config.process_boolean_config(self.dry_run)
        for var_name, status in STATUS_OPTIONS:
            self.config.process_boolean_config(var_name)

        if self.config[self.last_sync_type] not in SyncMode.ALL:
            raise UsageError('Invalid last_sync_type "%s". Expected one of: %s' %
                (self.config[self.last_sync_type], ', '.join(SyncMode.ALL)))

        if not self.config['kw_url']:
            self.config['kw_url'] = self.env.get(envvars.KLOCWORK_URL, '')
        if not self.config['kw_url']:
            raise UsageError('Missing Klocwork URL: set kw_url or %s' % (envvars.KLOCWORK_URL))

    def get_sync_request(self):
        builds_dir = self.config[self.builds_dir] or build_history.locate_builds_dir(self.env)
        build_id = self.config[self.build_id] or self.env.get('BUILD_NUMBER') or self.env.get('BUILD_ID')
        return SyncWindowRequest(self.config[self.last_sync_type], self.config[self.man_sync],
            builds_dir, build_id or None)

    def get_statuses(self):
        return [status for var_name, status in STATUS_OPTIONS if self.config[var_name]]

    def get_version_cmd(self):
        return ArgumentList('kwxsync', '--version')

    def get_xsync_cmd(self, now=None):
        url = self.config['kw_url']
        projects = self.api.match_projects(self.config[self.project_regexp])
        last_sync = resolve_last_sync(self.get_sync_request(), now)

        cmd = ArgumentList('kwxsync', '--url', url)
        if last_sync == FULL_SYNC:
            self.emit.info('No previous synchronisation available, will do full synchronisation')
            cmd.add('--full')
        else:
            cmd.add('--last-sync', last_sync)

        if self.config[self.dry_run]:
            cmd.add('--dry')

        statuses = self.get_statuses()
        if statuses:
            cmd.add('--statuses', ','.join(statuses))

        if self.config[self.additional_opts]:
            cmd.add_tokenized(envvars.expand(self.config[self.additional_opts], self.env))

        cmd.add(*projects)
        return cmd

    def synchronize(self, cwd=None):
        execute_checked(self.get_version_cmd(), env=self.env, cwd=cwd,
            output=lambda line: logger.info('kwxsync version: %s' % line.rstrip()))
        cmd = self.get_xsync_cmd()
        self.emit.info('Running %s' % (cmd))
        execute_checked(cmd, env=self.env, cwd=cwd)
        return cmd
