"""
Resolves the --last-sync argument of kwxsync.

The result is either the literal FULL_SYNC ('full') or a timestamp in
LAST_SYNC_FORMAT. In manual mode a duration expression is subtracted from
the current time; in the build modes the start time of the reference build
is used.

Duration expressions come in two forms:

    columnar    DD-MM-YYYY hh:mm:ss     e.g. 03-00-0000 00:00:00 (three days)
    compact     [Ny][Nmo][Nd][Nh][Nm][Ns], in that order, e.g. 2d3h or 1mo

The components are subtracted in the order days, months, years, hours,
minutes, seconds. Days, months and years move the wall-clock date (month
ends are clamped, 31 March - 1mo is the last day of February); hours,
minutes and seconds move the absolute instant.
"""
import collections
import re
from datetime import datetime, timedelta

from dateutil import tz
from dateutil.relativedelta import relativedelta

from kwtools.kwlib.commons import UsageError
from kwtools.kwlib import build_history
from kwtools.kwlib import log_mgr

logger = log_mgr.mods.add_mod(__name__)

FULL_SYNC = 'full'
LAST_SYNC_FORMAT = '%d-%m-%Y %H:%M:%S'

DURATION_FIELDS = ['days', 'months', 'years', 'hours', 'minutes', 'seconds']
CALENDAR_FIELDS = ['days', 'months', 'years']
ELAPSED_FIELDS = ['hours', 'minutes', 'seconds']

COLUMNAR_DURATION_RE = re.compile(
    r'^\s*(?P<days>\d{2})-(?P<months>\d{2})-(?P<years>\d{4})'
    r' (?P<hours>\d{2}):(?P<minutes>\d{2}):(?P<seconds>\d{2})\s*$')

COMPACT_DURATION_RE = re.compile(
    r'^\s*(?:(?P<years>\d+)\s*y\s*)?'
    r'(?:(?P<months>\d+)\s*mo\s*)?'
    r'(?:(?P<days>\d+)\s*d\s*)?'
    r'(?:(?P<hours>\d+)\s*h\s*)?'
    r'(?:(?P<minutes>\d+)\s*m\s*)?'
    r'(?:(?P<seconds>\d+)\s*s\s*)?$')


class SyncMode(object):
    MANUAL = 'manual'
    PREVIOUS_BUILD = 'lastBuild'
    LAST_SUCCESS = 'lastSuccess'
    FULL = 'full'

    ALL = [MANUAL, PREVIOUS_BUILD, LAST_SUCCESS, FULL]


class SyncWindowError(UsageError):
    pass


SyncWindowRequest = collections.namedtuple('SyncWindowRequest',
    ['mode', 'duration', 'builds_dir', 'build_id'])
SyncWindowRequest.__new__.__defaults__ = (None, None, None)

Duration = collections.namedtuple('Duration', DURATION_FIELDS)
Duration.__new__.__defaults__ = (0,) * len(DURATION_FIELDS)


def parse_duration(text):
    """
    Parses a duration expression into a Duration.
    Raises SyncWindowError if text matches neither form.
    """
    if text is None or not text.strip():
        raise SyncWindowError('Last Sync is mandatory for manual synchronisation')

    match = COLUMNAR_DURATION_RE.match(text)
    if not match:
        match = COMPACT_DURATION_RE.match(text)
    if not match or not any(match.groupdict().values()):
        raise SyncWindowError('Could not match Last Sync value "%s" using regular expression. '
            'Please check date/time format on job config.' % (text))

    values = dict((key, int(val or 0)) for key, val in match.groupdict().items())
    return Duration(**values)


def _minus_elapsed(date, delta):
    if date.tzinfo is None:
        return date - delta
    utc_date = date.astimezone(tz.UTC) - delta
    return utc_date.astimezone(date.tzinfo)


def subtract_duration(now, duration):
    date = now
    try:
        for field in CALENDAR_FIELDS:
            value = getattr(duration, field)
            if value:
                date = date - relativedelta(**{field: value})
        if date.tzinfo is not None:
            # Wall-clock times skipped by a DST change move forward
            date = tz.resolve_imaginary(date)
        for field in ELAPSED_FIELDS:
            value = getattr(duration, field)
            if value:
                date = _minus_elapsed(date, timedelta(**{field: value}))
    except (OverflowError, ValueError):
        raise SyncWindowError('Last Sync value %s is out of range' % (duration,))
    return date


def format_cutoff(date):
    return date.strftime(LAST_SYNC_FORMAT)


def reference_build_time(request, tzinfo=None):
    """
    Returns the start time of the build the sync window is measured from,
    or None if there is no such build
    """
    if request.mode == SyncMode.PREVIOUS_BUILD and request.build_id is None:
        logger.info('No build identifier given, will do full synchronisation')
        return None

    if not request.builds_dir:
        raise SyncWindowError('Unable to locate the build history for last sync type "%s"' %
            (request.mode))

    if request.mode == SyncMode.PREVIOUS_BUILD:
        ref_id = build_history.previous_build_id(request.build_id)
    else:
        ref_id = build_history.last_successful_build_id(request.builds_dir)
        if ref_id is None:
            return None

    if ref_id < 0:
        logger.info('No build available, will do full synchronisation')
        return None

    return build_history.read_build_timestamp(request.builds_dir, ref_id, tzinfo)


def resolve_last_sync(request, now=None):
    """
    Returns FULL_SYNC or the formatted cutoff timestamp for the request
    """
    if request.mode not in SyncMode.ALL:
        raise SyncWindowError('Unknown last sync type "%s". Expected one of: %s' %
            (request.mode, ', '.join(SyncMode.ALL)))

    if request.mode == SyncMode.FULL:
        return FULL_SYNC

    if now is None:
        now = datetime.now(tz.tzlocal())

    if request.mode == SyncMode.MANUAL:
        duration = parse_duration(request.duration)
        logger.debug('Subtracting %s from %s' % (duration, now))
        return format_cutoff(subtract_duration(now, duration))

    reference = reference_build_time(request, now.tzinfo)
    if reference is None:
        return FULL_SYNC
    return format_cutoff(reference)
