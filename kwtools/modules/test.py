import importlib
import unittest

from kwtools.kwlib.cmd import BaseCommand
from kwtools.kwlib import commons

LIBRARY_TESTS = 'kwtools.kwlib.tests'


class Command(BaseCommand):
    name = 'test'
    help = 'Runs tests for one or all modules.'
    conf_syntax = '[module_name]'
    conf_help = 'module_name: [optional] Specify a module to be tested\n'\
        '  (omit to run the tests of the library and all modules)'

    def configure(self):
        self.test_mod = None

    def parse_args(self):
        if self.args:
            self.test_mod = self.args[0]
            if self.test_mod not in self.config.command_list:
                raise commons.UsageError('Unable to find command %s' % (self.test_mod))
        return True

    def process_args(self):
        return True

    def import_test(self, package_name):
        try:
            test_mod = importlib.import_module('%s' % package_name)
        except ImportError:
            return False
        print('Importing tests for: %s' % package_name)
        for test_name in getattr(test_mod, '__all__', []):
            full_name = '%s.%s' % (package_name, test_name)
            try:
                inmod = importlib.import_module(full_name)
            except ImportError as err:
                print('  ***** Unable to import from %s: %s' % (full_name, err))
                continue
            print('  - importing tests from %s' % full_name)
            self.suite.addTest(unittest.defaultTestLoader.loadTestsFromModule(inmod))
        return True

    def handle(self):
        self.suite = unittest.TestSuite()
        if self.test_mod:
            res = self.import_test('kwtools.modules.%s.tests' % self.test_mod)
            if not res:
                raise commons.UsageError('Module %s is missing tests' % self.test_mod)
        else:
            self.import_test(LIBRARY_TESTS)
            for mod_name in sorted(self.config.command_list):
                res = self.import_test('kwtools.modules.%s.tests' % mod_name)
                if not res:
                    print('-> Module missing tests: %s' % mod_name)

        result = unittest.TextTestRunner(verbosity=2).run(self.suite)
        return result.wasSuccessful()
