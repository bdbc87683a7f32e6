from kwtools.kwlib import conf_mgr
from kwtools.kwlib.mod_mgr import ReturnChannel, load_modules


class EmitRecorder(object):
    """Return channel callback keeping every emitted object"""
    def __init__(self):
        self.events = []

    def __call__(self, obj):
        self.events.append(obj)

    def messages(self, ev_type='info'):
        return [event.msg for event in self.events if event.ev_type == ev_type]


def make_config(cmd_name, call_back=None):
    """Config as built by mod_mgr for a library call of cmd_name"""
    if call_back is None:
        call_back = EmitRecorder()
    ret_chn = ReturnChannel(call_back, {})
    return conf_mgr.Config(cmd_name, load_modules(), [], ret_chn, 'import')
