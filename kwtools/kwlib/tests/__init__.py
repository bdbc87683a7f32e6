__all__ = [
    'sync_window_test',
    'build_history_test',
    'kwapi_test',
    'ltoken_test',
    'envvars_test',
    'launcher_test',
    'conf_mgr_test',
    'mod_mgr_test',
]
