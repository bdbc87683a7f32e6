__all__ = [
    'help',
    'env',
    'list_projects',
    'xsync',
    'test',
]
