__all__ = [
    'xsync_test',
]
