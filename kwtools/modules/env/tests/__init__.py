__all__ = [
    'job_env_test',
]
