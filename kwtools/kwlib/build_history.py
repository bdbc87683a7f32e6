"""
Read access to the CI server's build records.

A job keeps one directory per build under <JENKINS_HOME>/jobs/<job>/builds:

    builds/<id>/build.xml          holds <timestamp>millis since epoch</timestamp>
    builds/lastSuccessfulBuild     symlink to the build id, or a file holding it (-1: none)

Missing records are reported as None ("no history"), never raised.
"""
import os
import re
from datetime import datetime

from dateutil import tz

from kwtools.kwlib.commons import UsageError
from kwtools.kwlib import log_mgr

logger = log_mgr.mods.add_mod(__name__)

BUILD_RECORD_FILE = 'build.xml'
LAST_SUCCESS_POINTER = 'lastSuccessfulBuild'
BUILD_TAG_PREFIX = 'jenkins-'

TIMESTAMP_RE = re.compile(r'<timestamp>\s*(-?\d+)\s*</timestamp>')


def job_name_from_build_tag(build_tag, build_number=None):
    """
    BUILD_TAG is jenkins-<job name>-<build number>
    """
    if not build_tag or not build_tag.startswith(BUILD_TAG_PREFIX):
        return None
    job_name = build_tag[len(BUILD_TAG_PREFIX):]
    if build_number and job_name.endswith('-%s' % build_number):
        job_name = job_name[:-len(build_number) - 1]
    elif '-' in job_name:
        job_name = job_name.rsplit('-', 1)[0]
    else:
        return None
    return job_name or None


def locate_builds_dir(env):
    """
    Returns the builds directory of the running job, or None when the
    environment does not describe one
    """
    job_name = env.get('JOB_NAME')
    if not job_name:
        job_name = job_name_from_build_tag(env.get('BUILD_TAG'), env.get('BUILD_NUMBER'))
    if not job_name:
        logger.debug('Unable to determine job name from environment')
        return None

    jenkins_home = env.get('JENKINS_HOME')
    if not jenkins_home:
        workspace = env.get('WORKSPACE')
        if not workspace:
            logger.debug('Neither JENKINS_HOME nor WORKSPACE are set')
            return None
        # <home>/workspace/<job>
        jenkins_home = os.path.dirname(os.path.dirname(os.path.normpath(workspace)))

    # Jobs inside folders are nested as <home>/jobs/<folder>/jobs/<job>
    path = [jenkins_home]
    for part in job_name.split('/'):
        path += ['jobs', part]
    path.append('builds')
    return os.path.join(*path)


def parse_build_id(build_id):
    try:
        return int(str(build_id).strip())
    except ValueError:
        raise UsageError('Invalid build identifier "%s": a number is expected' % (build_id))


def previous_build_id(build_id):
    return parse_build_id(build_id) - 1


def last_successful_build_id(builds_dir):
    pointer = os.path.join(builds_dir, LAST_SUCCESS_POINTER)
    try:
        if os.path.islink(pointer):
            value = os.path.basename(os.readlink(pointer))
        else:
            with open(pointer) as pointer_file:
                value = pointer_file.readline()
    except (IOError, OSError) as err:
        logger.info('Unable to read last successful build from %s: %s' % (pointer, err))
        return None

    try:
        return int(value.strip())
    except ValueError:
        logger.info('Unexpected last successful build value in %s: %r' % (pointer, value))
        return None


def read_build_timestamp(builds_dir, build_id, tzinfo=None):
    """
    Returns the start time of a build as an aware datetime, or None if the
    build record is missing or has no timestamp
    """
    record = os.path.join(builds_dir, str(build_id), BUILD_RECORD_FILE)
    try:
        with open(record) as record_file:
            content = record_file.read()
    except (IOError, OSError) as err:
        logger.info('Unable to read build record %s: %s' % (record, err))
        return None

    match = TIMESTAMP_RE.search(content)
    if not match:
        logger.info('No timestamp in build record %s' % (record))
        return None

    if tzinfo is None:
        tzinfo = tz.tzlocal()
    return datetime.fromtimestamp(int(match.group(1)) / 1000.0, tzinfo)
