import re

KLOCWORK_URL = 'KLOCWORK_URL'
KLOCWORK_PROJECT = 'KLOCWORK_PROJECT'
KLOCWORK_LICENSE_HOST = 'KLOCWORK_LICENSE_HOST'
KLOCWORK_LICENSE_PORT = 'KLOCWORK_LICENSE_PORT'
KLOCWORK_LTOKEN = 'KLOCWORK_LTOKEN'

VAR_RE = re.compile(r'\$(?:\{([A-Za-z_][A-Za-z0-9_.]*)\}|([A-Za-z_][A-Za-z0-9_]*))')


def expand(text, env):
    """
    Replaces $NAME and ${NAME} with the value from env.
    Unknown variables are left as they are.
    """
    if not text:
        return text

    def _replace(match):
        name = match.group(1) or match.group(2)
        if name in env:
            return env[name]
        return match.group(0)

    return VAR_RE.sub(_replace, text)
