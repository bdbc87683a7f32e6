__all__ = [
    'commons',
    'log_mgr',
    'conf_mgr',
    'cmd',
    'mod_mgr',
    'http_req',
    'restclient',
    'kwapi',
    'ltoken',
    'envvars',
    'launcher',
    'build_history',
    'sync_window',
]
