import os
import tempfile
import unittest
from unittest import mock

import check_env
from update_template_id import update_template_id


class TestCheckEnv(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmpdir.cleanup)
        cwd = os.getcwd()
        os.chdir(self.tmpdir.name)
        self.addCleanup(os.chdir, cwd)

    @mock.patch.dict(os.environ, {'TEMPLATE_SPREADSHEET_ID': 'abc'}, clear=True)
    def test_required_vars_present(self):
        self.assertTrue(check_env.check_required_vars())

    @mock.patch.dict(os.environ, {}, clear=True)
    def test_required_vars_missing(self):
        self.assertFalse(check_env.check_required_vars())

    @mock.patch.dict(os.environ, {}, clear=True)
    def test_oauth_client_file(self):
        self.assertFalse(check_env.check_oauth_files())

        with open('credentials.json', 'w') as f:
            f.write('{}')
        self.assertTrue(check_env.check_oauth_files())

    @mock.patch.dict(os.environ, {}, clear=True)
    def test_main_without_env_file(self):
        self.assertFalse(check_env.main())


class TestUpdateTemplateId(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmpdir.cleanup)
        self.env_file = os.path.join(self.tmpdir.name, '.env')

    def test_missing_env_file(self):
        self.assertFalse(update_template_id('new', self.env_file))

    def test_replaces_only_the_template_line(self):
        with open(self.env_file, 'w') as f:
            f.write('TEMPLATE_SPREADSHEET_ID=old\nTIMEZONE=Asia/Tokyo\n')

        self.assertTrue(update_template_id('new', self.env_file))

        with open(self.env_file) as f:
            self.assertEqual(f.read(), 'TEMPLATE_SPREADSHEET_ID=new\nTIMEZONE=Asia/Tokyo\n')

    def test_env_file_without_template_line(self):
        with open(self.env_file, 'w') as f:
            f.write('TIMEZONE=Asia/Tokyo\n')

        self.assertFalse(update_template_id('new', self.env_file))


if __name__ == '__main__':
    unittest.main()
