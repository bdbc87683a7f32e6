import io
import unittest

from mock import patch, MagicMock

from kwtools.kwlib.commons import UsageError
from kwtools.kwlib.launcher import ArgumentList, LauncherError, execute, execute_checked


def fake_process(output, ret_code):
    proc = MagicMock()
    proc.stdout = io.StringIO(output)
    proc.wait.return_value = ret_code
    return proc


class TestArgumentList(unittest.TestCase):
    def test_add(self):
        args = ArgumentList('kwxsync', '--url', 'http://kw:8080')
        args.add('--last-sync', '13-03-2023 07:00:00').add(1)
        self.assertEqual(args.to_list(),
            ['kwxsync', '--url', 'http://kw:8080', '--last-sync', '13-03-2023 07:00:00', '1'])
        self.assertEqual(len(args), 6)

    def test_add_tokenized(self):
        args = ArgumentList('kwxsync')
        args.add_tokenized('--report-file "my report.txt"  --verbose')
        args.add_tokenized('')
        self.assertEqual(list(args), ['kwxsync', '--report-file', 'my report.txt', '--verbose'])

    def test_unbalanced_quotes(self):
        self.assertRaises(UsageError, ArgumentList('kwxsync').add_tokenized, '--opt "unbalanced')

    def test_str_quotes_arguments(self):
        args = ArgumentList('kwxsync', '--last-sync', '13-03-2023 07:00:00')
        self.assertEqual(str(args), "kwxsync --last-sync '13-03-2023 07:00:00'")


class TestExecute(unittest.TestCase):
    @patch('kwtools.kwlib.launcher.subprocess.Popen')
    def test_output_is_forwarded(self, mock_popen):
        mock_popen.return_value = fake_process('line 1\nline 2\n', 0)
        lines = []
        ret_code = execute(ArgumentList('kwxsync', '--version'), env={'PATH': '/bin'}, cwd='/tmp',
            output=lines.append)

        self.assertEqual(ret_code, 0)
        self.assertEqual(lines, ['line 1\n', 'line 2\n'])
        call_args, call_kwargs = mock_popen.call_args
        self.assertEqual(call_args[0], ['kwxsync', '--version'])
        self.assertEqual(call_kwargs['env'], {'PATH': '/bin'})
        self.assertEqual(call_kwargs['cwd'], '/tmp')

    @patch('kwtools.kwlib.launcher.subprocess.Popen')
    def test_non_zero_exit_code(self, mock_popen):
        mock_popen.return_value = fake_process('License error\n', 3)
        self.assertEqual(execute(ArgumentList('kwadmin'), output=lambda line: None), 3)

        mock_popen.return_value = fake_process('License error\n', 3)
        self.assertRaises(LauncherError, execute_checked, ArgumentList('kwadmin'), output=lambda line: None)

    @patch('kwtools.kwlib.launcher.subprocess.Popen')
    def test_missing_executable(self, mock_popen):
        mock_popen.side_effect = OSError(2, 'No such file or directory')
        self.assertRaises(LauncherError, execute, ArgumentList('kwxsync'))
