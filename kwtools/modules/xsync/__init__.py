from kwtools.kwlib.cmd import BaseCommand

from kwtools.modules.xsync.xsync_config import KlocworkXSync


class Command(BaseCommand):
    help = 'Klocwork cross-project issue synchronisation (kwxsync) utility.'

    def configure(self):
        self.xsync = KlocworkXSync(self.config)
        self.config.add_custom_option('print_only', 'Print the kwxsync command instead of running it (True|False)',
            default='False')

    def handle(self):
        self.xsync.initialize()
        if self.config.process_boolean_config('print_only'):
            cmd = self.xsync.get_xsync_cmd()
            self.emit.info(str(cmd))
            self.emit.queue(cmd=cmd.to_list())
            return True
        cmd = self.xsync.synchronize()
        self.emit.queue(cmd=cmd.to_list())
        return True
