import importlib

from kwtools.kwlib import conf_mgr
from kwtools.kwlib import commons
from kwtools.kwlib import log_mgr

from kwtools import modules

logger = log_mgr.mods.add_mod(__name__)

EVENT_TYPES = ['info', 'error', 'close']


def stdout_callback(obj):
    print(obj)


class Info(object):
    """
    One event sent over the return channel. Extra keyword items (e.g. the
    kwxsync command line) travel with the event.
    """
    def __init__(self, ev_type, msg='', **items):
        if ev_type not in EVENT_TYPES:
            raise ValueError('Unknown event type %s, expected one of %s' % (ev_type, ', '.join(EVENT_TYPES)))
        self.ev_type = ev_type
        self.msg = msg
        self.items = items

    def __str__(self):
        if self.ev_type != 'close':
            return '%s: %s' % (self.ev_type.title(), self.msg)
        text = 'Done - %s' % ('Success' if self.items['status'] else 'Failed')
        if self.msg:
            text += ': %s' % (self.msg)
        return text


class EmitShortCut:
    """
    Lets commands write emit.info(...), emit.queue(...) or emit(...)
    """
    def __init__(self, ret_chn):
        self.ret_chn = ret_chn
        self.info = ret_chn.emit_info
        self.error = ret_chn.emit_error
        self.queue = ret_chn.queue
        self.close = ret_chn.close

    def __call__(self, *args, **kwargs):
        self.ret_chn.emit_it(*args, **kwargs)


class ReturnChannel(object):
    """
    Carries the events of a command run to call_back. Items given to queue()
    are attached to the next event; the last event is always 'close'.
    """
    def __init__(self, call_back, call_back_args=None):
        self.is_open = True
        self.call_back = call_back
        self.call_back_args = call_back_args or {}
        self.info_container = Info
        self.queued_objs = {}
        self.emit = EmitShortCut(self)

    def set_info_container(self, info_cls):
        self.info_container = info_cls

    def emit_obj(self, obj):
        if not self.is_open:
            raise ValueError('Emit operation on closed channel')
        self.call_back(obj, **self.call_back_args)

    def emit_it(self, ev_type, *args, **kwargs):
        items, self.queued_objs = self.queued_objs, {}
        items.update(kwargs)
        info = self.info_container(ev_type, *args, **items)
        logger.debug('Emitting Msg: "%s"' % (info))
        self.emit_obj(info)

    def queue(self, **kwargs):
        self.queued_objs.update(kwargs)

    def close(self, *args, **kwargs):
        if 'status' not in kwargs:
            raise ValueError('Missing status for close')
        self.emit_it('close', *args, **kwargs)
        self.is_open = False

    def emit_info(self, *args, **kwargs):
        self.emit_it('info', *args, **kwargs)

    def emit_error(self, *args, **kwargs):
        self.emit_it('error', *args, **kwargs)


def _load_command(mod_name):
    try:
        mod = importlib.import_module('kwtools.modules.%s' % (mod_name))
    except ImportError:
        logger.exception('Exception in importing module %s' % (mod_name))
        raise commons.UsageError('Unable to import module %s' % (mod_name))

    cmd_cls = getattr(mod, 'Command', None)
    if cmd_cls is None:
        raise commons.UsageError('Module missing Command class: %s' % (mod_name))
    if not cmd_cls.name:
        cmd_cls.name = mod_name
    if not getattr(cmd_cls, 'help', None):
        raise commons.UsageError('Missing help string for module %s' % (cmd_cls.name))
    return cmd_cls


def load_modules():
    """
    Returns {command name: Command class} for every module in kwtools.modules
    """
    commands = {}
    for mod_name in modules.__all__:
        if not mod_name.startswith('_'):
            cmd_cls = _load_command(mod_name)
            commands[cmd_cls.name] = cmd_cls
    return commands


def _run(cmd_inst, config):
    cmd_inst.configure()
    if not cmd_inst.parse_args():
        # Only the help was requested
        return None
    cmd_inst.args = config.args
    cmd_inst.process_args()
    return cmd_inst.handle()


def run_command(cmd_name, args, call_src, call_options=None,
        call_back=stdout_callback, call_back_args=None):

    command_list = load_modules()
    if cmd_name not in command_list:
        raise commons.UsageError("Command not found: %s" % (cmd_name))

    ret_chn = ReturnChannel(call_back, call_back_args)
    config = conf_mgr.Config(cmd_name, command_list, args, ret_chn, call_src, call_options)

    try:
        ret_status = _run(command_list[cmd_name](config, args), config)
    except commons.Error as err:
        if call_src == 'shell':
            raise
        logger.exception(str(err))
        ret_chn.close(status=False, msg=str(err))
        return False

    ret_chn.close(status=True)
    return ret_status is None or ret_status
